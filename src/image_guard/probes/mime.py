"""MIMEタイプ判定モジュール

python-magic（libmagic）によるコンテンツスニッフィングを優先し、
利用できない場合は先頭6バイトのシグネチャから判定する。

戻り値の区別:
  - None: ファイルを開けない（読み取り不能）
  - "": 読み取れたが形式を判定できない
  - それ以外: 小文字化・正規化済みのMIMEタイプ
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Optional, Union

from .formats import normalize_mime

try:
    import magic

    MAGIC_AVAILABLE = True
except ImportError:
    # libmagic 本体が無い環境でも ImportError になる
    MAGIC_AVAILABLE = False
    magic = None

logger = logging.getLogger(__name__)

# パス -> MIMEタイプ。判定不能なら空文字または None
MimeDetector = Callable[[str], Optional[str]]

HEADER_SIZE = 6

_JPEG_PREFIX = b"\xff\xd8\xff"
_PNG_HEADER = b"\x89PNG\r\n"
_GIF_HEADERS = (b"GIF87a", b"GIF89a")


def create_magic_detector() -> MimeDetector | None:
    """python-magic の判定器を生成する。利用できない環境では None"""
    if not MAGIC_AVAILABLE:
        return None
    try:
        detector = magic.Magic(mime=True)
    except Exception as err:
        logger.warning("libmagic を初期化できません: %s", err)
        return None
    return detector.from_file


def mime_from_header(header: bytes) -> str:
    """先頭バイトからMIMEタイプを判定する。該当なしは空文字"""
    if header[:3] == _JPEG_PREFIX:
        return "image/jpeg"
    if header == _PNG_HEADER:
        return "image/png"
    if header in _GIF_HEADERS:
        return "image/gif"
    return ""


class MimeSniffer:
    """ファイル内容からMIMEタイプを判定する

    判定器はコンストラクタで一度だけ解決する。
    """

    def __init__(
        self,
        *,
        detector: MimeDetector | None = None,
        use_magic: bool = True,
    ) -> None:
        """MimeSniffer を初期化する

        Args:
            detector: MIME判定器。省略時は use_magic に従う
            use_magic: True かつ detector 未指定なら python-magic を使う。
                False の場合はシグネチャ判定のみで動作する
        """
        if detector is None and use_magic:
            detector = create_magic_detector()
        self._detector = detector
        if self._detector is None:
            logger.warning(
                "python-magic が利用できません。シグネチャ判定で代替します"
            )

    @property
    def has_detector(self) -> bool:
        """python-magic 等の判定器が使えるか"""
        return self._detector is not None

    def sniff(self, file_path: Union[str, Path]) -> str | None:
        """ファイルのMIMEタイプを返す

        Args:
            file_path: 判定対象のファイルパス

        Returns:
            正規化済みMIMEタイプ。判定不能なら ""、読み取り不能なら None
        """
        path = str(file_path)
        try:
            with open(path, "rb") as fh:
                fh.seek(0)
                header = fh.read(HEADER_SIZE)
        except OSError as err:
            logger.debug("MIME判定用にファイルを開けません: %s (%s)", path, err)
            return None

        mime = ""
        if self._detector is not None:
            try:
                mime = normalize_mime(self._detector(path))
            except Exception as err:
                logger.warning("MIME判定器でエラーが発生しました: %s (%s)", path, err)
                mime = ""

        if not mime:
            mime = mime_from_header(header)

        logger.debug("MIME判定: %s -> %r", path, mime)
        return mime
