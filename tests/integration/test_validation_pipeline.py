"""検証パイプラインの統合テスト

既定の判定器（filetype / python-magic / Pillow）をそのまま使い、
実際の画像ファイルに対する振る舞いを確認する。
python-magic（libmagic）が無い環境ではシグネチャ判定に切り替わるため、
どちらの環境でも同じ結果になることを前提とする。
"""

import os
from pathlib import Path

import pytest

from image_guard import (
    FailureReason,
    ImageValidator,
    ValidationSettings,
)
from image_guard.validators import EnvSettingsProvider


@pytest.fixture
def validator() -> ImageValidator:
    return ImageValidator()


class TestPipeline:
    """エンドツーエンドの検証"""

    def test_well_formed_jpeg_is_valid(self, validator, make_image):
        """100x100 のメタデータなし JPEG は受理される"""
        outcome = validator.validate(make_image("photo.jpg", fmt="JPEG"))
        assert outcome.is_valid
        assert validator.last_message() == ""

    @pytest.mark.parametrize(
        "filename, fmt",
        [("a.png", "PNG"), ("a.gif", "GIF"), ("a.jpeg", "JPEG")],
    )
    def test_supported_formats_are_valid(self, validator, make_image, filename, fmt):
        assert validator.validate(make_image(filename, fmt=fmt)).is_valid

    @pytest.mark.parametrize("extension", ["bmp", "tif", "svg", "php", "txt"])
    def test_unsupported_extensions(self, validator, make_image, extension):
        outcome = validator.validate(make_image(f"image.{extension}", fmt="PNG"))
        assert outcome.reason is FailureReason.BAD_EXTENSION

    @pytest.mark.parametrize(
        "filename, fmt",
        [("a.jpg", "PNG"), ("a.png", "GIF"), ("a.gif", "JPEG"), ("a.png", "BMP")],
    )
    def test_signature_disagreeing_with_extension(self, validator, make_image, filename, fmt):
        outcome = validator.validate(make_image(filename, fmt=fmt))
        assert outcome.reason is FailureReason.EXTENSION_TYPE_MISMATCH

    def test_png_renamed_jpg_detail(self, validator, make_image):
        outcome = validator.validate(make_image("renamed.jpg", fmt="PNG"))
        assert outcome.detail == "extension=JPEG, detected=PNG"

    def test_exif_code_injection(self, validator, make_jpeg_with_exif):
        outcome = validator.validate(make_jpeg_with_exif("<?php eval($_GET['x']); ?>"))
        assert outcome.reason is FailureReason.BAD_EXIF

    def test_harmless_exif(self, validator, make_jpeg_with_exif):
        assert validator.validate(make_jpeg_with_exif("Shot on a sunny day")).is_valid

    def test_corrupted_png_body(self, validator, truncated_png: Path):
        outcome = validator.validate(truncated_png)
        assert outcome.reason is FailureReason.UNREADABLE_IMAGE

    def test_dimension_bounds(self, validator, make_image):
        path = make_image("banner.png", width=300, height=50)
        assert (
            validator.validate(path, ValidationSettings(min_height=60)).reason
            is FailureReason.DIMENSION_TOO_SMALL
        )
        assert (
            validator.validate(path, ValidationSettings(max_width=200)).reason
            is FailureReason.DIMENSION_TOO_LARGE
        )
        assert validator.validate(path, ValidationSettings(max_width=300, max_height=50)).is_valid

    def test_zero_bounds_never_reject(self, validator, make_image):
        path = make_image("huge.png", width=1, height=400)
        settings = ValidationSettings(min_width=0, min_height=0, max_width=0, max_height=0)
        assert validator.validate(path, settings).is_valid


class TestRepeatedValidation:
    """同じファイルを繰り返し検証した場合の振る舞い"""

    def test_idempotent(self, validator, make_image):
        path = make_image("photo.jpg", fmt="JPEG")
        first = validator.validate(path)
        cached = validator.dimension_probe.cached
        second = validator.validate(path)
        assert first == second
        assert validator.dimension_probe.cached == cached

    def test_changed_min_width_is_reevaluated(self, validator, make_image):
        """キャッシュされたサイズではなく新しい設定で判定し直す"""
        path = make_image("photo.png", width=100, height=100)
        assert validator.validate(path, ValidationSettings(min_width=50)).is_valid
        outcome = validator.validate(path, ValidationSettings(min_width=150))
        assert outcome.reason is FailureReason.DIMENSION_TOO_SMALL
        assert validator.validate(path, ValidationSettings(min_width=50)).is_valid

    def test_alternating_files(self, validator, make_image):
        small = make_image("small.png", width=10, height=10)
        large = make_image("large.png", width=500, height=500)
        settings = ValidationSettings(max_width=100)
        for _ in range(2):
            assert validator.validate(small, settings).is_valid
            assert validator.validate(large, settings).reason is FailureReason.DIMENSION_TOO_LARGE

    def test_settings_from_environment(self, make_image, monkeypatch):
        monkeypatch.setenv("IMAGE_GUARD_MAX_HEIGHT", "64")
        validator = ImageValidator(provider=EnvSettingsProvider())
        outcome = validator.validate(make_image("tall.gif", fmt="GIF", width=10, height=100))
        assert outcome.reason is FailureReason.DIMENSION_TOO_LARGE

    def test_rewritten_upload_path_is_rechecked(self, validator, make_image):
        """一時アップロードパスが再利用されても新しい画像で判定する"""
        settings = ValidationSettings(max_width=200)
        path = make_image("upload.png", width=100, height=100)
        assert validator.validate(path, settings).is_valid

        mtime_ns = path.stat().st_mtime_ns
        make_image("upload.png", width=5000, height=10)
        os.utime(path, ns=(mtime_ns + 10**9, mtime_ns + 10**9))

        outcome = validator.validate(path, settings)
        assert outcome.reason is FailureReason.DIMENSION_TOO_LARGE
        assert outcome.dimensions.size_label == "5000x10"


class TestFormatsAndPayloads:
    """形式の揺れと EXIF の埋め込みコード"""

    def test_animated_png_is_valid(self, validator, make_apng):
        assert validator.validate(make_apng()).is_valid

    @pytest.mark.parametrize(
        "description",
        [
            "caption\neval($_GET['c'])",
            "x\x00system($_GET['c'])",
            "<?= $_GET[0]($_GET[1]); ?>",
        ],
    )
    def test_hidden_exif_payloads(self, validator, make_jpeg_with_exif, description):
        outcome = validator.validate(make_jpeg_with_exif(description))
        assert outcome.reason is FailureReason.BAD_EXIF
