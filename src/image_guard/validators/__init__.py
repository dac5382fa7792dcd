"""画像アップロード検証パッケージ

拡張子・シグネチャ・MIMEタイプの整合性、解像度制限、EXIF の不審パターン、
完全デコードの可否を順に検証する。

使用例::

    from image_guard.validators import ImageValidator, ValidationSettings

    validator = ImageValidator(settings=ValidationSettings(max_width=4000))
    outcome = validator.validate("/uploads/photo.jpg")
    if not outcome.is_valid:
        print(outcome.reason, validator.last_message())
"""

from .errors import ImageRejectedError, InvalidSettingsError, ValidationError
from .hooks import AcceptAllHook, CallableHook, ErrorSink, PostCheckHook
from .image_validator import ImageValidator, ValidationOutcome
from .reasons import FailureReason, ReasonCatalog
from .settings import (
    EnvSettingsProvider,
    MappingSettingsProvider,
    SettingsProvider,
    ValidationSettings,
)

__all__ = [
    "AcceptAllHook",
    "CallableHook",
    "EnvSettingsProvider",
    "ErrorSink",
    "FailureReason",
    "ImageRejectedError",
    "ImageValidator",
    "InvalidSettingsError",
    "MappingSettingsProvider",
    "PostCheckHook",
    "ReasonCatalog",
    "SettingsProvider",
    "ValidationError",
    "ValidationOutcome",
    "ValidationSettings",
]
