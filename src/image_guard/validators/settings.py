"""検証設定

ValidationSettings は不変のスナップショットで、既定値に外部の設定ソースの
上書きを重ねて検証呼び出しごとに生成する。0 はその制限を無効にする。
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, fields, replace
from typing import Protocol

from .errors import InvalidSettingsError

logger = logging.getLogger(__name__)

SETTING_KEYS: tuple[str, ...] = ("min_width", "min_height", "max_width", "max_height")

# ホスト側の設定名（camelCase）との対応
_KEY_ALIASES: dict[str, str] = {
    "minWidth": "min_width",
    "minHeight": "min_height",
    "maxWidth": "max_width",
    "maxHeight": "max_height",
}


class SettingsProvider(Protocol):
    """外部設定ソース"""

    def get(self, key: str) -> int | None:
        """設定値を返す。未設定なら None"""
        ...


@dataclass(frozen=True)
class ValidationSettings:
    """解像度制限の設定

    Attributes:
        min_width: 最小幅（0 で無制限）
        min_height: 最小高さ（0 で無制限）
        max_width: 最大幅（0 で無制限）
        max_height: 最大高さ（0 で無制限）
    """

    min_width: int = 2
    min_height: int = 2
    max_width: int = 0
    max_height: int = 0

    def __post_init__(self) -> None:
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise InvalidSettingsError(
                    f"解像度の設定値が不正です: {f.name}={value!r}（0以上の整数を指定してください）"
                )

    @property
    def has_bounds(self) -> bool:
        """いずれかの制限が有効か"""
        return any(getattr(self, key) for key in SETTING_KEYS)

    def merged(self, provider: SettingsProvider | None) -> ValidationSettings:
        """設定ソースの値で上書きした新しいスナップショットを返す

        設定ソースは各キーにつき1回だけ参照する。
        """
        if provider is None:
            return self
        overrides = {}
        for key in SETTING_KEYS:
            value = provider.get(key)
            if value is not None:
                overrides[key] = value
        if not overrides:
            return self
        logger.debug("検証設定を上書き: %s", overrides)
        return replace(self, **overrides)


class MappingSettingsProvider:
    """辞書ベースの設定ソース（camelCase のキーも受け付ける）"""

    def __init__(self, values: Mapping[str, int | None]) -> None:
        self._values = {_KEY_ALIASES.get(key, key): value for key, value in values.items()}

    def get(self, key: str) -> int | None:
        return self._values.get(_KEY_ALIASES.get(key, key))


class EnvSettingsProvider:
    """環境変数ベースの設定ソース

    ``IMAGE_GUARD_MIN_WIDTH`` のように prefix + キーの大文字を参照する。
    空文字・未設定は None として扱う。
    """

    def __init__(
        self,
        *,
        prefix: str = "IMAGE_GUARD_",
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self._prefix = prefix
        self._environ = environ if environ is not None else os.environ

    def get(self, key: str) -> int | None:
        name = self._prefix + _KEY_ALIASES.get(key, key).upper()
        raw = self._environ.get(name, "").strip()
        if not raw:
            return None
        try:
            return int(raw)
        except ValueError:
            raise InvalidSettingsError(
                f"環境変数の値が整数ではありません: {name}={raw!r}"
            ) from None
