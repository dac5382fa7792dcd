"""PostCheckHook / ErrorSink のユニットテスト"""

from image_guard.validators.hooks import AcceptAllHook, CallableHook, ErrorSink
from image_guard.validators.reasons import FailureReason


class TestHooks:
    def test_accept_all_hook(self):
        hook = AcceptAllHook()
        assert hook.is_valid_extra("/uploads/a.png") is True
        assert hook.is_valid_extra("") is False

    def test_callable_hook(self):
        hook = CallableHook(lambda path: path.endswith("ok.png"))
        assert hook.is_valid_extra("ok.png") is True
        assert hook.is_valid_extra("ng.png") is False


class TestErrorSink:
    def test_empty_sink(self):
        assert ErrorSink().last_message() == ""

    def test_last_message(self):
        sink = ErrorSink()
        sink.report(FailureReason.BAD_MIME, "text/plain", "first")
        sink.report(FailureReason.BAD_EXIF, "eval", "second")
        assert sink.last_message() == "second"
        assert sink.messages == ["first", "second"]

    def test_last_message_with_clear(self):
        sink = ErrorSink()
        sink.report(FailureReason.BAD_MIME, None, "message")
        assert sink.last_message(clear=True) == "message"
        assert sink.last_message() == ""
        assert sink.messages == []
