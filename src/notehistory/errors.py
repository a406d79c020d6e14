"""Error hierarchy for notehistory.

Every public error class inherits from :class:`NoteHistoryError`.  Each
carries a machine-readable ``code`` (from :class:`ErrorCode`), a
human-readable ``message``, an optional structured ``context`` dict, and
an optional ``cause`` (chained exception).

No error raised here is globally fatal: each one is scoped to a single
document and a single operation.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

# ---------------------------------------------------------------------------
# Error code enum
# ---------------------------------------------------------------------------

class ErrorCode(str, Enum):
    """Machine-readable error codes for every error the package can raise."""

    NOT_FOUND = "NOT_FOUND"
    MALFORMED_INPUT = "MALFORMED_INPUT"
    STORAGE_ERROR = "STORAGE_ERROR"
    EXTRACTION_ERROR = "EXTRACTION_ERROR"
    NETWORK_ERROR = "NETWORK_ERROR"
    HTTP_ERROR = "HTTP_ERROR"


# ---------------------------------------------------------------------------
# Base error
# ---------------------------------------------------------------------------

class NoteHistoryError(Exception):
    """Base exception for all notehistory errors.

    Parameters
    ----------
    code:
        A value from :class:`ErrorCode` (or any string) identifying the
        error category.
    message:
        A developer-friendly description of what went wrong.
    context:
        Arbitrary structured data providing extra diagnostic detail.
        Keys are documented per subclass.
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

    def __reduce__(self) -> tuple[Any, ...]:
        return (_rebuild_error, (type(self), self.code, self.message, self.context))


def _rebuild_error(
    cls: type[NoteHistoryError],
    code: str,
    message: str,
    context: dict[str, Any],
) -> NoteHistoryError:
    err = NoteHistoryError.__new__(cls)
    NoteHistoryError.__init__(err, code=code, message=message, context=context)
    return err


# ---------------------------------------------------------------------------
# Core errors
# ---------------------------------------------------------------------------

class NoteHistoryNotFoundError(NoteHistoryError):
    """The requested version id is absent from the store.

    Context keys: ``document_id``, ``version_id``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.NOT_FOUND,
            message=message,
            context=context,
            cause=cause,
        )


class NoteHistoryMalformedInputError(NoteHistoryError):
    """An attribution or restore request has missing or invalid fields.

    Raised before any state is touched, so existing versions and the
    throttle state are unaffected.

    Context keys: ``field``, ``value``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.MALFORMED_INPUT,
            message=message,
            context=context,
            cause=cause,
        )


class NoteHistoryStorageError(NoteHistoryError):
    """A read or write against the durable key-value store failed.

    Context keys: ``document_id``, ``key``, ``operation``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.STORAGE_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


class NoteHistoryExtractionError(NoteHistoryError):
    """A snapshot or structural tree could not be decoded.

    Raised by decoders only.  The block extractor and the diff engine
    catch it and continue with an empty block sequence.

    Context keys: ``reason``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.EXTRACTION_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


# ---------------------------------------------------------------------------
# Client errors
# ---------------------------------------------------------------------------

class NoteHistoryNetworkError(NoteHistoryError):
    """A transport-level failure occurred (timeout, DNS, connection reset).

    Context keys: ``url``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.NETWORK_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


class NoteHistoryHTTPError(NoteHistoryError):
    """The history server answered with an unexpected status code.

    Context keys: ``status_code``, ``path``, ``body``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.HTTP_ERROR,
            message=message,
            context=context,
            cause=cause,
        )
