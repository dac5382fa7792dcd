"""image_guard: アップロード画像の整合性検証

GIF / PNG / JPEG のアップロードファイルが宣言どおりの画像であることを確認する。
"""

from .probes import SupportedFormat
from .validators import (
    FailureReason,
    ImageRejectedError,
    ImageValidator,
    ValidationError,
    ValidationOutcome,
    ValidationSettings,
)

__version__ = "0.1.0"

__all__ = [
    "FailureReason",
    "ImageRejectedError",
    "ImageValidator",
    "SupportedFormat",
    "ValidationError",
    "ValidationOutcome",
    "ValidationSettings",
    "__version__",
]
