"""テスト共通フィクスチャ

テスト用画像は Pillow で tmp_path に都度生成する。
"""

import io
from pathlib import Path
from typing import Callable

import pytest
from PIL import Image


def create_test_image(
    width: int = 100,
    height: int = 100,
    fmt: str = "PNG",
    *,
    noise: bool = False,
    **save_options,
) -> bytes:
    """テスト用の画像バイナリを生成する"""
    if noise:
        image = Image.effect_noise((width, height), 64).convert("RGB")
    else:
        image = Image.new("RGB", (width, height), color="red")
    buffer = io.BytesIO()
    image.save(buffer, format=fmt, **save_options)
    return buffer.getvalue()


@pytest.fixture
def make_image(tmp_path: Path) -> Callable[..., Path]:
    """tmp_path に画像ファイルを作成するファクトリ

    使用例: make_image("photo.jpg", fmt="JPEG", width=10, height=10)
    """

    def _make(
        filename: str = "test.png",
        *,
        width: int = 100,
        height: int = 100,
        fmt: str = "PNG",
        **options,
    ) -> Path:
        file_path = tmp_path / filename
        file_path.write_bytes(create_test_image(width, height, fmt, **options))
        return file_path

    return _make


@pytest.fixture
def make_jpeg_with_exif(tmp_path: Path) -> Callable[..., Path]:
    """ImageDescription に任意の文字列を持つ JPEG を作成するファクトリ"""

    def _make(description: str, filename: str = "exif.jpg") -> Path:
        exif = Image.Exif()
        exif[0x010E] = description  # ImageDescription
        file_path = tmp_path / filename
        file_path.write_bytes(create_test_image(fmt="JPEG", exif=exif))
        return file_path

    return _make


@pytest.fixture
def truncated_png(tmp_path: Path) -> Path:
    """ヘッダーは正しいが本体が途中で切れた PNG"""
    data = create_test_image(200, 200, "PNG", noise=True)
    file_path = tmp_path / "truncated.png"
    file_path.write_bytes(data[: len(data) // 2])
    return file_path


@pytest.fixture
def make_apng(tmp_path: Path) -> Callable[..., Path]:
    """2フレームのアニメーション PNG を作成するファクトリ"""

    def _make(filename: str = "anim.png") -> Path:
        first = Image.new("RGB", (50, 50), color="red")
        second = Image.new("RGB", (50, 50), color="blue")
        buffer = io.BytesIO()
        first.save(buffer, format="PNG", save_all=True, append_images=[second])
        file_path = tmp_path / filename
        file_path.write_bytes(buffer.getvalue())
        return file_path

    return _make
