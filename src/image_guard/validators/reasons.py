"""検証失敗理由とメッセージカタログ"""

from __future__ import annotations

import enum
import string
from collections.abc import Mapping
from typing import Any


class FailureReason(enum.Enum):
    """検証失敗の種類"""

    BAD_EXTENSION = "bad_extension"
    EXTENSION_TYPE_MISMATCH = "extension_type_mismatch"
    EXTENSION_MIME_MISMATCH = "extension_mime_mismatch"
    NO_MIME_DETECTED = "no_mime_detected"
    BAD_MIME = "bad_mime"
    BAD_EXIF = "bad_exif"
    DIMENSION_TOO_SMALL = "dimension_too_small"
    DIMENSION_TOO_LARGE = "dimension_too_large"
    UNREADABLE_IMAGE = "unreadable_image"
    CUSTOM_HOOK_REJECTED = "custom_hook_rejected"


DEFAULT_TEMPLATES: dict[FailureReason, str] = {
    FailureReason.BAD_EXTENSION: (
        "許可されていないファイル拡張子です: ${extension}。"
        "対応拡張子: gif, jpeg, jpg, png"
    ),
    FailureReason.EXTENSION_TYPE_MISMATCH: (
        "拡張子と画像形式が一致しません: 拡張子=${declared}、検出された形式=${detected}"
    ),
    FailureReason.EXTENSION_MIME_MISMATCH: (
        "拡張子とMIMEタイプが一致しません: 拡張子=${declared}、検出されたMIMEタイプ=${detected}"
    ),
    FailureReason.NO_MIME_DETECTED: "MIMEタイプを判定できません: ファイルを読み込めません",
    FailureReason.BAD_MIME: "許可されていないMIMEタイプです: ${mime}",
    FailureReason.BAD_EXIF: "画像のメタデータに不正なコードが含まれている可能性があります",
    FailureReason.DIMENSION_TOO_SMALL: (
        "画像の解像度が小さすぎます: ${width}x${height}（下限: ${min_width}x${min_height}）"
    ),
    FailureReason.DIMENSION_TOO_LARGE: (
        "画像の解像度が制限を超えています: ${width}x${height}（上限: ${max_width}x${max_height}）"
    ),
    FailureReason.UNREADABLE_IMAGE: "画像ファイルを読み込めません（${origin}: ${extension}）",
    FailureReason.CUSTOM_HOOK_REJECTED: "追加の検証で画像が拒否されました",
}


class _Blank(dict):
    def __missing__(self, key: str) -> str:
        return ""


class ReasonCatalog:
    """失敗理由を表示用メッセージに変換する

    テンプレートは ``string.Template`` 形式（``${name}``）。
    与えられなかったパラメータは空文字として描画する。
    """

    def __init__(self, templates: Mapping[FailureReason, str] | None = None) -> None:
        self._templates = {**DEFAULT_TEMPLATES, **(templates or {})}

    def render(
        self, reason: FailureReason, params: Mapping[str, Any] | None = None
    ) -> str:
        template = string.Template(self._templates[reason])
        return template.substitute(_Blank({k: str(v) for k, v in (params or {}).items()}))
