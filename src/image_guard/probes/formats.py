"""対応画像形式の定義

GIF / PNG / JPEG の3形式のみを扱う。各形式は正規のMIMEタイプと
表示ラベルを1つずつ持ち、拡張子 jpg / jpeg はどちらも JPEG に対応する。
"""

from __future__ import annotations

import enum


class SupportedFormat(enum.Enum):
    """検証対象の画像形式"""

    GIF = "gif"
    PNG = "png"
    JPEG = "jpeg"

    @property
    def mime(self) -> str:
        """正規のMIMEタイプ"""
        return _CANONICAL_MIME[self]

    @property
    def label(self) -> str:
        """エラーメッセージ用の表示ラベル"""
        return self.name

    @classmethod
    def from_extension(cls, extension: str) -> SupportedFormat | None:
        """拡張子（ドットの有無・大小文字は問わない）から形式を返す"""
        return _EXTENSION_TO_FORMAT.get(extension.lower().lstrip("."))

    @classmethod
    def from_mime(cls, mime: str) -> SupportedFormat | None:
        """MIMEタイプ（別名を含む）から形式を返す"""
        return _MIME_TO_FORMAT.get(normalize_mime(mime))

    @classmethod
    def from_name(cls, name: str | None) -> SupportedFormat | None:
        """検出器が返す形式名（"jpeg", "JPG", "PNG" 等）から形式を返す"""
        if not name:
            return None
        return _DETECTOR_NAMES.get(name.lower().lstrip("."))


_CANONICAL_MIME: dict[SupportedFormat, str] = {
    SupportedFormat.GIF: "image/gif",
    SupportedFormat.PNG: "image/png",
    SupportedFormat.JPEG: "image/jpeg",
}

_EXTENSION_TO_FORMAT: dict[str, SupportedFormat] = {
    "gif": SupportedFormat.GIF,
    "png": SupportedFormat.PNG,
    "jpg": SupportedFormat.JPEG,
    "jpeg": SupportedFormat.JPEG,
}

# 判定器が返す形式名。APNG はシグネチャ上 PNG そのもの
_DETECTOR_NAMES: dict[str, SupportedFormat] = {
    **_EXTENSION_TO_FORMAT,
    "apng": SupportedFormat.PNG,
}

# 旧ブラウザ等が送ってくる別名
MIME_ALIASES: dict[str, str] = {
    "image/pjpeg": "image/jpeg",
    "image/x-png": "image/png",
}

# 受理するMIMEラベル（正規形3つ + 別名2つ）
RECOGNIZED_MIMES: frozenset[str] = frozenset(
    {*_CANONICAL_MIME.values(), *MIME_ALIASES}
)

# 判定器（libmagic 等）が返しうる、受理MIMEラベル以外の表記
_DETECTOR_MIME_ALIASES: dict[str, str] = {
    "image/apng": "image/png",
    "image/vnd.mozilla.apng": "image/png",
}

_MIME_TO_FORMAT: dict[str, SupportedFormat] = {
    mime: fmt for fmt, mime in _CANONICAL_MIME.items()
}

ALLOWED_EXTENSIONS: frozenset[str] = frozenset(_EXTENSION_TO_FORMAT)


def normalize_mime(mime: str | None) -> str:
    """MIMEタイプを小文字化し、別名を正規形に置き換える

    ``image/jpeg; charset=binary`` のようなパラメータ付きの値は
    パラメータ部分を取り除く。
    """
    if not mime:
        return ""
    value = mime.split(";", 1)[0].strip().lower()
    value = _DETECTOR_MIME_ALIASES.get(value, value)
    return MIME_ALIASES.get(value, value)
