"""画像メタデータ（EXIF）検査モジュール

JPEG に埋め込まれた EXIF を取り出してテキストにダンプし、
コード注入を疑わせるパターンを探す。

ダンプした文字列全体を走査するため、ネストした IFD や
表示用に整形された値の中に現れるパターンも検出対象になる。
これはヒューリスティックな多層防御であり、検出を保証するものではない。
誤検知・検出漏れはいずれも起こりうる既知の制約である。
"""

from __future__ import annotations

import enum
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Mapping, Optional, Union

from PIL import ExifTags, Image

logger = logging.getLogger(__name__)

# パス -> メタデータの辞書。メタデータが無ければ空または None
MetadataExtractor = Callable[[str], Optional[Mapping[str, Any]]]

# 関数呼び出しとして現れたときのみ疑わしいとみなす名前
SUSPICIOUS_FUNCTIONS: tuple[str, ...] = (
    "eval",
    "system",
    "exec",
    "shell_exec",
    "passthru",
    "base64_decode",
)

# 埋め込みマークアップ・サーバーサイドコードの目印
SCRIPT_TAG = "<script"
INLINE_CODE_MARKER = "<%"
SERVER_CODE_TAG = "<?"

_SCRIPT_TAG_RE = re.compile(r"<script\b", re.IGNORECASE)
_FUNCTION_CALL_RES: dict[str, re.Pattern[str]] = {
    name: re.compile(r"\W" + re.escape(name) + r"\(", re.IGNORECASE)
    for name in SUSPICIOUS_FUNCTIONS
}

_TAG_NAMES: dict[ExifTags.IFD, dict[int, str]] = {
    ExifTags.IFD.Exif: ExifTags.TAGS,
    ExifTags.IFD.GPSInfo: ExifTags.GPSTAGS,
    ExifTags.IFD.Interop: ExifTags.TAGS,
}


class ScanStatus(enum.Enum):
    """メタデータ検査の判定"""

    NOT_APPLICABLE = "not_applicable"
    CLEAN = "clean"
    SUSPICIOUS = "suspicious"


@dataclass(frozen=True)
class ScanResult:
    """メタデータ検査結果

    Attributes:
        status: 判定
        matches: 検出したパターン名。非詳細モードでは最初の1件のみ
    """

    status: ScanStatus
    matches: tuple[str, ...] = ()

    @property
    def suspicious(self) -> bool:
        return self.status is ScanStatus.SUSPICIOUS


def read_exif_with_pillow(file_path: str) -> dict[str, Any]:
    """Pillow で EXIF（サブIFD と JPEG コメントを含む）を辞書として読み出す"""
    with Image.open(file_path) as img:
        exif = img.getexif()
        comment = img.info.get("comment")

        data: dict[str, Any] = {
            ExifTags.TAGS.get(tag, tag): value for tag, value in exif.items()
        }
        sub_ifds = {
            ExifTags.IFD.Exif: exif.get_ifd(ExifTags.IFD.Exif),
            ExifTags.IFD.GPSInfo: exif.get_ifd(ExifTags.IFD.GPSInfo),
        }
        # Interop は Exif IFD の中から参照される
        if ExifTags.IFD.Interop in sub_ifds[ExifTags.IFD.Exif]:
            sub_ifds[ExifTags.IFD.Interop] = exif.get_ifd(ExifTags.IFD.Interop)

        for ifd, sub in sub_ifds.items():
            if sub:
                names = _TAG_NAMES[ifd]
                data[ifd.name] = {names.get(tag, tag): value for tag, value in sub.items()}

    if comment:
        data["COMMENT"] = comment
    return data


class MetadataScanner:
    """JPEG メタデータの不審パターン検査器"""

    def __init__(
        self, *, extractor: MetadataExtractor | None = read_exif_with_pillow
    ) -> None:
        self._extractor = extractor
        if extractor is None:
            logger.warning("メタデータ抽出機能が利用できません。EXIF検査を省略します")

    def scan(
        self, file_path: Union[str, Path], *, verbose: bool = False
    ) -> ScanResult:
        """メタデータを検査する

        Args:
            file_path: JPEG ファイルのパス
            verbose: True の場合は一致したパターンをすべて集める。
                False の場合は最初の一致で打ち切る

        Returns:
            ScanResult。抽出機能が無い・メタデータが無い場合は NOT_APPLICABLE
        """
        if self._extractor is None:
            return ScanResult(ScanStatus.NOT_APPLICABLE)

        path = str(file_path)
        try:
            metadata = self._extractor(path)
        except Exception as err:
            logger.warning("メタデータを読み出せません: %s (%s)", path, err)
            return ScanResult(ScanStatus.NOT_APPLICABLE)

        if not metadata:
            return ScanResult(ScanStatus.NOT_APPLICABLE)

        matches = find_suspicious_patterns(dump_metadata(metadata), verbose=verbose)
        if matches:
            logger.debug("不審なメタデータ: %s -> %s", path, ", ".join(matches))
            return ScanResult(ScanStatus.SUSPICIOUS, matches)
        return ScanResult(ScanStatus.CLEAN)


def dump_metadata(metadata: Mapping[str, Any], depth: int = 0) -> str:
    """メタデータを人が読める1つのテキストに整形する

    値はエスケープせずそのまま書き出す。改行や NULL などの制御文字も
    元の文字のまま残るので、パターン直前の区切り文字として扱われる。
    バイト列は latin-1 で1バイト1文字に展開する。
    """
    indent = "    " * depth
    lines = []
    for key, value in metadata.items():
        if isinstance(value, Mapping):
            lines.append(f"{indent}[{key}] => (")
            lines.append(dump_metadata(value, depth + 1))
            lines.append(f"{indent})")
        else:
            lines.append(f"{indent}[{key}] => {_as_text(value)}")
    return "\n".join(lines)


def _as_text(value: Any) -> str:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("latin-1")
    if isinstance(value, (tuple, list)):
        return " ".join(_as_text(item) for item in value)
    return str(value)


def find_suspicious_patterns(text: str, *, verbose: bool = False) -> tuple[str, ...]:
    """テキスト中の不審パターン名を返す

    1巡目は関数呼び出し（非単語文字 + 名前 + "("）、
    2巡目はスクリプトタグ・インラインコード・サーバーサイドコードの目印を探す。
    verbose=False の場合は最初の一致で打ち切る。
    """
    matches: list[str] = []
    lowered = text.lower()

    for name in SUSPICIOUS_FUNCTIONS:
        if name in lowered and _FUNCTION_CALL_RES[name].search(text):
            matches.append(name)
            if not verbose:
                return tuple(matches)

    if SCRIPT_TAG in lowered and _SCRIPT_TAG_RE.search(text):
        matches.append(SCRIPT_TAG)
        if not verbose:
            return tuple(matches)

    for marker in (INLINE_CODE_MARKER, SERVER_CODE_TAG):
        if marker in lowered:
            matches.append(marker)
            if not verbose:
                break

    return tuple(matches)
