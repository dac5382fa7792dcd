"""画像アップロード検証モジュール

アップロードされたファイルが宣言どおりの GIF / PNG / JPEG 画像であることを検証する。
拡張子・バイナリシグネチャ・MIMEタイプの3つの信号はそれぞれ独立に偽装されうるため、
いずれか2つが食い違った時点で拒否する。

検証順序（最初の失敗で打ち切り、再試行はしない）:
  1. 拡張子チェック
  2. 設定の上書き適用
  3. シグネチャと拡張子の一致
  4. MIMEタイプの判定と拡張子の一致
  5. 解像度チェック（制限が設定されている場合のみ）
  6. EXIF の不審パターン検査（JPEG のみ）
  7. 完全デコード
  8. 外部の追加検証
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Union

from ..probes import (
    RECOGNIZED_MIMES,
    DecodeProbe,
    DimensionInfo,
    DimensionProbe,
    MetadataScanner,
    MimeSniffer,
    SignatureSniffer,
    SupportedFormat,
)
from .errors import ImageRejectedError, ValidationError
from .hooks import AcceptAllHook, ErrorSink, PostCheckHook
from .reasons import FailureReason, ReasonCatalog
from .settings import SettingsProvider, ValidationSettings

logger = logging.getLogger(__name__)

UNKNOWN_LABEL = "UNKNOWN"


# ---------------------------------------------------------------------------
# ValidationOutcome データクラス
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ValidationOutcome:
    """検証結果を表すイミュータブルなデータクラス

    Attributes:
        is_valid: 検証が成功したかどうか
        reason: 失敗理由（成功時は None）
        detail: 失敗の補足情報
        params: メッセージ描画用のパラメータ
        message: 表示用メッセージ（成功時は空文字）
        dimensions: 解像度チェックを行った場合のサイズ情報
    """

    is_valid: bool
    reason: FailureReason | None = None
    detail: str | None = None
    params: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))
    message: str = ""
    dimensions: DimensionInfo | None = None

    def __bool__(self) -> bool:
        return self.is_valid

    @classmethod
    def valid(cls, *, dimensions: DimensionInfo | None = None) -> ValidationOutcome:
        return cls(is_valid=True, dimensions=dimensions)

    @classmethod
    def invalid(
        cls,
        reason: FailureReason,
        detail: str | None = None,
        params: Mapping[str, Any] | None = None,
        *,
        message: str = "",
        dimensions: DimensionInfo | None = None,
    ) -> ValidationOutcome:
        return cls(
            is_valid=False,
            reason=reason,
            detail=detail,
            params=MappingProxyType(dict(params or {})),
            message=message,
            dimensions=dimensions,
        )


# ---------------------------------------------------------------------------
# ImageValidator クラス
# ---------------------------------------------------------------------------


class ImageValidator:
    """画像ファイルの多信号整合性検証クラス

    各プローブはコンストラクタで一度だけ解決する。環境に依存する判定器
    （python-magic、EXIF 読み出し、デコーダ）が無い場合は、文書化された
    代替手段か「判定材料なし」として扱い、例外を外に漏らさない。

    Attributes:
        _settings: 既定の検証設定
        _provider: 呼び出しごとに参照する外部設定ソース
        _hook: 最後に呼ぶ追加検証
        _errors: エラーメッセージの蓄積先
    """

    def __init__(
        self,
        *,
        settings: ValidationSettings | None = None,
        provider: SettingsProvider | None = None,
        hook: PostCheckHook | None = None,
        catalog: ReasonCatalog | None = None,
        errors: ErrorSink | None = None,
        dimension_probe: DimensionProbe | None = None,
        signature_sniffer: SignatureSniffer | None = None,
        mime_sniffer: MimeSniffer | None = None,
        metadata_scanner: MetadataScanner | None = None,
        decode_probe: DecodeProbe | None = None,
    ) -> None:
        self._settings = settings or ValidationSettings()
        self._provider = provider
        self._hook = hook or AcceptAllHook()
        self._catalog = catalog or ReasonCatalog()
        self._errors = errors or ErrorSink()
        self._dimensions = dimension_probe or DimensionProbe()
        self._signature = signature_sniffer or SignatureSniffer(probe=self._dimensions)
        self._mime = mime_sniffer or MimeSniffer()
        self._metadata = metadata_scanner or MetadataScanner()
        self._decoder = decode_probe or DecodeProbe()

    @property
    def settings(self) -> ValidationSettings:
        return self._settings

    @property
    def errors(self) -> ErrorSink:
        return self._errors

    @property
    def dimension_probe(self) -> DimensionProbe:
        return self._dimensions

    # -------------------------------------------------------------------
    # 公開メソッド
    # -------------------------------------------------------------------

    def validate(
        self,
        file_path: Union[str, Path],
        settings: ValidationSettings | None = None,
        provider: SettingsProvider | None = None,
    ) -> ValidationOutcome:
        """画像ファイルを検証する

        Args:
            file_path: 検証対象のファイルパス
            settings: この呼び出しに限り使う検証設定（省略時は既定値）
            provider: この呼び出しに限り使う外部設定ソース
                （省略時はコンストラクタで指定したもの）

        Returns:
            ValidationOutcome: 検証結果（最初に見つかった失敗のみを含む）

        Raises:
            ValidationError: パスに NULL バイトが含まれる場合
            InvalidSettingsError: 設定ソースの値が不正な場合
        """
        path = str(file_path)
        if "\x00" in path:
            raise ValidationError("ファイルパスにNULLバイトが含まれています")

        # 拡張子チェック
        extension = Path(path).suffix.lower().lstrip(".")
        declared = SupportedFormat.from_extension(extension) if extension else None
        if declared is None:
            return self._fail(
                path, FailureReason.BAD_EXTENSION, extension, {"extension": extension}
            )

        effective = (settings or self._settings).merged(provider or self._provider)

        # シグネチャチェック
        detected = self._signature.sniff(path)
        if detected is not declared:
            detected_label = detected.label if detected else UNKNOWN_LABEL
            return self._fail(
                path,
                FailureReason.EXTENSION_TYPE_MISMATCH,
                f"extension={declared.label}, detected={detected_label}",
                {"declared": declared.label, "detected": detected_label},
            )

        # MIMEタイプチェック
        mime = self._mime.sniff(path)
        if mime is None:
            return self._fail(path, FailureReason.NO_MIME_DETECTED, "unreadable")
        if mime not in RECOGNIZED_MIMES:
            return self._fail(path, FailureReason.BAD_MIME, mime, {"mime": mime})
        if SupportedFormat.from_mime(mime) is not declared:
            return self._fail(
                path,
                FailureReason.EXTENSION_MIME_MISMATCH,
                f"extension={declared.mime}, detected={mime}",
                {"declared": declared.mime, "detected": mime},
            )

        # 解像度チェック
        dimensions = None
        if effective.has_bounds:
            dimensions = self._dimensions.probe(path)
            if dimensions is None:
                return self._fail(
                    path,
                    FailureReason.UNREADABLE_IMAGE,
                    "size-probe",
                    {"origin": "size-probe", "extension": extension},
                )
            failure = self._check_dimensions(path, dimensions, effective)
            if failure is not None:
                return failure

        # EXIF チェック
        if declared is SupportedFormat.JPEG:
            scan = self._metadata.scan(path, verbose=False)
            if scan.suspicious:
                return self._fail(
                    path,
                    FailureReason.BAD_EXIF,
                    ", ".join(scan.matches),
                    {"patterns": ", ".join(scan.matches)},
                    dimensions=dimensions,
                )

        # デコードチェック（None はデコーダなし = 判定材料なし）
        if self._decoder.decode(path, extension) is False:
            return self._fail(
                path,
                FailureReason.UNREADABLE_IMAGE,
                f"decoder: {extension}",
                {"origin": "decoder", "extension": extension},
                dimensions=dimensions,
            )

        if not self._hook.is_valid_extra(path):
            return self._fail(
                path, FailureReason.CUSTOM_HOOK_REJECTED, dimensions=dimensions
            )

        logger.debug("画像の検証に成功しました: %s", path)
        return ValidationOutcome.valid(dimensions=dimensions)

    def is_valid(
        self,
        file_path: Union[str, Path],
        settings: ValidationSettings | None = None,
        provider: SettingsProvider | None = None,
    ) -> bool:
        """validate() の結果を真偽値で返す"""
        return self.validate(file_path, settings, provider).is_valid

    def ensure_valid(
        self,
        file_path: Union[str, Path],
        settings: ValidationSettings | None = None,
        provider: SettingsProvider | None = None,
    ) -> ValidationOutcome:
        """検証し、失敗した場合は例外を送出する

        Raises:
            ImageRejectedError: 画像が拒否された場合
        """
        outcome = self.validate(file_path, settings, provider)
        if not outcome.is_valid:
            raise ImageRejectedError(outcome)
        return outcome

    def last_message(self, *, clear: bool = False) -> str:
        """直近の失敗メッセージを返す"""
        return self._errors.last_message(clear=clear)

    # -------------------------------------------------------------------
    # プライベートメソッド
    # -------------------------------------------------------------------

    def _check_dimensions(
        self,
        path: str,
        info: DimensionInfo,
        settings: ValidationSettings,
    ) -> ValidationOutcome | None:
        """解像度の下限・上限を確認する。下限の違反を優先する"""
        params = {
            "width": info.width,
            "height": info.height,
            "min_width": settings.min_width,
            "min_height": settings.min_height,
            "max_width": settings.max_width,
            "max_height": settings.max_height,
        }

        if info.width < settings.min_width or info.height < settings.min_height:
            return self._fail(
                path,
                FailureReason.DIMENSION_TOO_SMALL,
                info.size_label,
                params,
                dimensions=info,
            )
        elif (settings.max_width and info.width > settings.max_width) or (
            settings.max_height and info.height > settings.max_height
        ):
            return self._fail(
                path,
                FailureReason.DIMENSION_TOO_LARGE,
                info.size_label,
                params,
                dimensions=info,
            )
        return None

    def _fail(
        self,
        path: str,
        reason: FailureReason,
        detail: str | None = None,
        params: Mapping[str, Any] | None = None,
        *,
        dimensions: DimensionInfo | None = None,
    ) -> ValidationOutcome:
        message = self._catalog.render(reason, params)
        self._errors.report(reason, detail, message)
        logger.info("画像を拒否しました: %s (%s: %s)", path, reason.value, detail)
        return ValidationOutcome.invalid(
            reason, detail, params, message=message, dimensions=dimensions
        )
