"""検証関連の例外"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .image_validator import ValidationOutcome


class ValidationError(Exception):
    """検証エラーの基底クラス"""


class InvalidSettingsError(ValidationError):
    """解像度の設定値が不正な場合のエラー"""


class ImageRejectedError(ValidationError):
    """画像が検証で拒否された場合のエラー

    Attributes:
        outcome: 拒否の理由を含む検証結果
    """

    def __init__(self, outcome: ValidationOutcome) -> None:
        super().__init__(outcome.message)
        self.outcome = outcome
