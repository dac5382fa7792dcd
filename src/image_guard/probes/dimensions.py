"""画像サイズ取得モジュール

Pillow の遅延読み込み（ヘッダーのみ解析）で幅・高さ・形式を取得する。
直近1件の結果を、ファイルパス・更新時刻・サイズをキーとしてキャッシュする。
キャッシュは高速化のためだけのもので、無効化しても結果は変わらない。
"""

from __future__ import annotations

import logging
import os
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Union

from PIL import Image

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DimensionInfo:
    """画像サイズ情報

    Attributes:
        file_path: 取得対象のファイルパス（キャッシュキー）
        width: 幅（ピクセル）
        height: 高さ（ピクセル）
        size_label: "幅x高さ" 形式の文字列
        detected_format: Pillow が判定した形式名（小文字）。判定不能なら None
    """

    file_path: str
    width: int
    height: int
    size_label: str
    detected_format: str | None


class DimensionProbe:
    """画像ヘッダーから解像度を取得するプローブ

    スレッド間で共有された場合でも、別パスの読み込み中に古い結果を
    返さないよう、キャッシュ参照から再計算までをロックで保護する。
    """

    def __init__(self, *, use_cache: bool = True) -> None:
        self._use_cache = use_cache
        self._cached: DimensionInfo | None = None
        self._cached_key: tuple[str, int, int] | None = None
        self._lock = threading.Lock()

    @property
    def cached(self) -> DimensionInfo | None:
        """直近にキャッシュされた結果"""
        return self._cached

    def probe(self, file_path: Union[str, Path]) -> DimensionInfo | None:
        """ファイルの解像度を取得する

        Args:
            file_path: 画像ファイルのパス

        Returns:
            DimensionInfo。ヘッダーを解析できない場合は None
        """
        path = str(file_path)
        with self._lock:
            key = _cache_key(path)
            if (
                self._use_cache
                and key is not None
                and self._cached is not None
                and self._cached_key == key
            ):
                logger.debug("サイズキャッシュを使用: %s", path)
                return self._cached

            info = self._read(path)
            if self._use_cache:
                self._cached = info
                self._cached_key = key if info is not None else None
            return info

    def clear(self) -> None:
        """キャッシュを破棄する"""
        with self._lock:
            self._cached = None
            self._cached_key = None

    @staticmethod
    def _read(file_path: str) -> DimensionInfo | None:
        try:
            with Image.open(file_path) as img:
                width, height = img.size
                fmt = img.format
        except Exception as err:
            logger.debug("画像サイズを取得できません: %s (%s)", file_path, err)
            return None

        info = DimensionInfo(
            file_path=file_path,
            width=width,
            height=height,
            size_label=f"{width}x{height}",
            detected_format=fmt.lower() if fmt else None,
        )
        logger.debug("画像サイズ: %s -> %s", file_path, info.size_label)
        return info


def _cache_key(path: str) -> tuple[str, int, int] | None:
    """パス・更新時刻・サイズの組。同じパスに別ファイルが書かれたら変わる"""
    try:
        stat = os.stat(path)
    except OSError:
        return None
    return path, stat.st_mtime_ns, stat.st_size
