"""Full error hierarchy for imgbed.

Every public error class inherits from ImgbedError. Each carries a
machine-readable ``code`` (from :class:`ErrorCode`), a human-readable
``message``, an optional structured ``context`` dict, and an optional
``cause`` (chained exception).

Error codes are defined as a :class:`str` enum so that they serialise
naturally to JSON and can be matched with simple ``==`` comparisons.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

# ---------------------------------------------------------------------------
# Error code enum
# ---------------------------------------------------------------------------

class ErrorCode(str, Enum):
    """Machine-readable error codes for every error imgbed can raise."""

    CONFIG_ERROR = "CONFIG_ERROR"
    ELIGIBILITY_DENIED = "ELIGIBILITY_DENIED"
    ENCODING_ERROR = "ENCODING_ERROR"
    FETCH_ERROR = "FETCH_ERROR"
    IMAGE_NOT_FOUND = "IMAGE_NOT_FOUND"
    UPLOAD_ERROR = "UPLOAD_ERROR"
    UPLOAD_TRANSPORT_ERROR = "UPLOAD_TRANSPORT_ERROR"
    UPLOAD_RESPONSE_ERROR = "UPLOAD_RESPONSE_ERROR"
    DELETE_ERROR = "DELETE_ERROR"


# ---------------------------------------------------------------------------
# Base error
# ---------------------------------------------------------------------------

class ImgbedError(Exception):
    """Base exception for all imgbed errors.

    Parameters
    ----------
    code:
        A value from :class:`ErrorCode` (or any string) identifying the
        error category.
    message:
        A user-presentable description of what went wrong.  This is the
        text shown in notices.
    context:
        Arbitrary structured data providing extra diagnostic detail.
        Keys and expected types are documented per subclass.
    cause:
        The underlying exception, if this error wraps another.
    """

    def __init__(
        self,
        code: str,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        self.code: str = code
        self.message: str = message
        self.context: dict[str, Any] = context or {}
        self.cause: Exception | None = cause
        super().__init__(message)
        if cause is not None:
            self.__cause__ = cause

    def __repr__(self) -> str:
        ctx = f", context={self.context!r}" if self.context else ""
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r}{ctx})"


class ImgbedConfigError(ImgbedError):
    """A persisted settings mapping could not be turned into a config.

    Context keys: ``field``, ``value``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.CONFIG_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


class ImgbedEligibilityError(ImgbedError):
    """Upload is not enabled for the active document.

    Trigger handlers treat ineligibility as a silent no-op; only the
    delete command raises this so the user learns why nothing happened.

    Context keys: ``server_url_set``, ``upload_api_set``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.ELIGIBILITY_DENIED,
            message=message,
            context=context,
            cause=cause,
        )


# ---------------------------------------------------------------------------
# Encoding errors
# ---------------------------------------------------------------------------

class ImgbedEncodingError(ImgbedError):
    """Base class for failures turning an image source into base64.

    Context keys: ``src``, ``reason``.
    """

    def __init__(
        self,
        code: str = ErrorCode.ENCODING_ERROR,
        message: str = "Image encoding failed",
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=code,
            message=message,
            context=context,
            cause=cause,
        )


class ImgbedFetchError(ImgbedEncodingError):
    """A network image could not be fetched (transport error or non-200).

    Context keys: ``src``, ``status_code``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.FETCH_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


class ImgbedImageNotFoundError(ImgbedEncodingError):
    """A vault-relative image could not be read.

    Context keys: ``src``, ``resolved_path``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.IMAGE_NOT_FOUND,
            message=message,
            context=context,
            cause=cause,
        )


# ---------------------------------------------------------------------------
# Upload errors
# ---------------------------------------------------------------------------

class ImgbedUploadError(ImgbedError):
    """Base class for upload errors.

    Context varies by subclass.
    """

    def __init__(
        self,
        code: str = ErrorCode.UPLOAD_ERROR,
        message: str = "Upload error",
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=code,
            message=message,
            context=context,
            cause=cause,
        )


class ImgbedUploadTransportError(ImgbedUploadError):
    """The upload request never produced a usable HTTP response.

    Context keys: ``url``, ``name``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.UPLOAD_TRANSPORT_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


class ImgbedUploadResponseError(ImgbedUploadError):
    """The server answered, but with an error code or a malformed body.

    Context keys: ``url``, ``status_code``, ``app_code``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.UPLOAD_RESPONSE_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


# ---------------------------------------------------------------------------
# Delete errors
# ---------------------------------------------------------------------------

class ImgbedDeleteError(ImgbedError):
    """The batch delete request failed.  Nothing was removed.

    Context keys: ``url``, ``paths``, ``status_code``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.DELETE_ERROR,
            message=message,
            context=context,
            cause=cause,
        )
