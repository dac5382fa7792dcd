"""バイナリシグネチャによる画像形式判定モジュール

ファイル名に依存せず、先頭バイトのマジックナンバーから形式を判定する。
判定器（filetype）が利用できない環境では DimensionProbe の
ヘッダー解析結果から形式を導出する。
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Optional, Union

import filetype

from .dimensions import DimensionProbe
from .formats import SupportedFormat

logger = logging.getLogger(__name__)

# パス -> 形式名（"jpg", "png" 等）。判定不能なら None
TypeDetector = Callable[[str], Optional[str]]


def detect_with_filetype(file_path: str) -> str | None:
    """filetype でマジックナンバーを照合し、拡張子形式の名前を返す"""
    kind = filetype.guess(file_path)
    return kind.extension if kind is not None else None


class SignatureSniffer:
    """ファイルの実体から SupportedFormat を判定する

    Attributes:
        _detector: 主判定器。None の場合はフォールバックのみを使う
        _probe: フォールバック用の DimensionProbe
    """

    def __init__(
        self,
        *,
        detector: TypeDetector | None = detect_with_filetype,
        probe: DimensionProbe | None = None,
    ) -> None:
        self._detector = detector
        self._probe = probe or DimensionProbe()
        if detector is None:
            logger.warning(
                "シグネチャ判定器が利用できません。ヘッダー解析で代替します"
            )

    def sniff(self, file_path: Union[str, Path]) -> SupportedFormat | None:
        """ファイルの形式を判定する

        Args:
            file_path: 判定対象のファイルパス

        Returns:
            判定された形式。判定不能な場合は None（どの拡張子とも一致しない）
        """
        path = str(file_path)

        if self._detector is not None:
            try:
                name = self._detector(path)
            except Exception as err:
                logger.warning(
                    "シグネチャ判定に失敗したためヘッダー解析で代替します: %s (%s)",
                    path,
                    err,
                )
            else:
                detected = SupportedFormat.from_name(name)
                logger.debug("シグネチャ判定: %s -> %s", path, detected)
                return detected

        return self._sniff_from_probe(path)

    def _sniff_from_probe(self, path: str) -> SupportedFormat | None:
        info = self._probe.probe(path)
        if info is None:
            return None
        detected = SupportedFormat.from_name(info.detected_format)
        logger.debug("ヘッダー解析による形式判定: %s -> %s", path, detected)
        return detected
