"""画像検査プローブ

シグネチャ・MIME・サイズ・メタデータ・デコードの各検査を個別に提供する。
"""

from .decode import DecodeProbe
from .dimensions import DimensionInfo, DimensionProbe
from .formats import ALLOWED_EXTENSIONS, RECOGNIZED_MIMES, SupportedFormat, normalize_mime
from .metadata import MetadataScanner, ScanResult, ScanStatus
from .mime import MimeSniffer
from .signature import SignatureSniffer

__all__ = [
    "ALLOWED_EXTENSIONS",
    "DecodeProbe",
    "DimensionInfo",
    "DimensionProbe",
    "MetadataScanner",
    "MimeSniffer",
    "RECOGNIZED_MIMES",
    "ScanResult",
    "ScanStatus",
    "SignatureSniffer",
    "SupportedFormat",
    "normalize_mime",
]
