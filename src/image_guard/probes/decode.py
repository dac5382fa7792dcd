"""画像デコード検査モジュール

拡張子に対応するコーデックで画像を完全にデコードし、
ヘッダーだけでなく本体まで構造的に正しいことを確認する。
"""

from __future__ import annotations

import logging
import warnings
from pathlib import Path
from typing import Union

from PIL import Image

from .formats import SupportedFormat

logger = logging.getLogger(__name__)

# SupportedFormat と Pillow のフォーマット名の対応
_PILLOW_FORMATS: dict[SupportedFormat, str] = {
    SupportedFormat.GIF: "GIF",
    SupportedFormat.PNG: "PNG",
    SupportedFormat.JPEG: "JPEG",
}


class DecodeProbe:
    """Pillow による完全デコードの試行

    decode() は3値を返す:
      - True: デコード成功
      - False: デコードを試みて失敗
      - None: この環境にその拡張子のデコーダが無い（判定材料なし）
    """

    def decoder_for(self, extension: str) -> str | None:
        """拡張子に対応する、この環境で利用可能な Pillow フォーマット名"""
        fmt = SupportedFormat.from_extension(extension)
        if fmt is None:
            return None
        name = _PILLOW_FORMATS[fmt]
        Image.init()
        return name if name in Image.OPEN else None

    def decode(self, file_path: Union[str, Path], extension: str) -> bool | None:
        """ファイルをデコードする

        デコード中のライブラリ警告は捕捉してログに残し、呼び出し元には伝播させない。

        Args:
            file_path: 画像ファイルのパス
            extension: 拡張子（デコーダの選択に使う）

        Returns:
            True / False / None（デコーダなし）
        """
        decoder = self.decoder_for(extension)
        if decoder is None:
            logger.debug("デコーダがありません: %s", extension)
            return None

        path = str(file_path)
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            try:
                with Image.open(path, formats=[decoder]) as img:
                    img.load()
            except Exception as err:
                logger.debug("デコードに失敗しました: %s (%s)", path, err)
                return False
            finally:
                for warning in caught:
                    logger.debug("デコード時の警告: %s (%s)", path, warning.message)

        return True
