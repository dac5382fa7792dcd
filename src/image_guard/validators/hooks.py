"""外部連携ポイント

検証後の追加チェック（PostCheckHook）と、エラーメッセージの蓄積先（ErrorSink）。
"""

from __future__ import annotations

from typing import Callable, Protocol

from .reasons import FailureReason


class PostCheckHook(Protocol):
    """すべての検査に通った後に呼ばれる追加検証"""

    def is_valid_extra(self, file_path: str) -> bool:
        ...


class AcceptAllHook:
    """既定の追加検証。空でないパスならすべて受理する"""

    def is_valid_extra(self, file_path: str) -> bool:
        return bool(file_path)


class CallableHook:
    """関数を PostCheckHook として使うためのアダプタ"""

    def __init__(self, func: Callable[[str], bool]) -> None:
        self._func = func

    def is_valid_extra(self, file_path: str) -> bool:
        return bool(self._func(file_path))


class ErrorSink:
    """検証エラーの蓄積先

    最新のメッセージを文字列として取り出せる。
    """

    def __init__(self) -> None:
        self._entries: list[tuple[FailureReason, str | None, str]] = []

    def report(
        self, reason: FailureReason, detail: str | None = None, message: str = ""
    ) -> None:
        self._entries.append((reason, detail, message))

    @property
    def messages(self) -> list[str]:
        return [message for _, _, message in self._entries]

    def last_message(self, *, clear: bool = False) -> str:
        """最新のメッセージを返す（無ければ空文字）

        Args:
            clear: True の場合、取得後に蓄積内容を破棄する
        """
        message = self._entries[-1][2] if self._entries else ""
        if clear:
            self.clear()
        return message

    def clear(self) -> None:
        self._entries.clear()
