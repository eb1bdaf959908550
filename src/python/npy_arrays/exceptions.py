# npy_arrays/exceptions.py
"""Custom exception types for the npy_arrays library."""

from typing import Any, Optional

from .types import ErrorKind


class NpyError(Exception):
    """
    Base exception for all errors raised by this library.

    Attributes:
        message (str): The primary error message.
        kind (ErrorKind): The failure category.
    """
    kind: ErrorKind

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        for name, value in details.items():
            setattr(self, name, value)

    def __str__(self) -> str:
        return f"{self.message} (kind={self.kind.name})"


# --- Format ---

class FormatError(NpyError, ValueError):
    """The preamble or header text is not a readable .npy header."""


class BadMagicError(FormatError):
    """
    The stream does not start with the .npy magic prefix.

    Attributes:
        actual (bytes): The bytes found where the magic prefix was expected.
    """
    kind = ErrorKind.BAD_MAGIC


class UnsupportedVersionError(FormatError):
    """
    Attributes:
        version (tuple[int, int]): The (major, minor) pair found in the file.
    """
    kind = ErrorKind.UNSUPPORTED_VERSION


class MalformedHeaderError(FormatError):
    """
    The header dictionary could not be parsed or is missing required keys.

    Attributes:
        position (int | None): Offset into the header text where parsing failed.
    """
    kind = ErrorKind.MALFORMED_HEADER

    def __init__(self, message: str, *, position: Optional[int] = None, **details: Any):
        super().__init__(message, position=position, **details)


class UnsupportedEndiannessError(FormatError):
    """
    Attributes:
        descr (str): The full `descr` value, e.g. '>f8'.
    """
    kind = ErrorKind.UNSUPPORTED_ENDIANNESS


# --- Types ---

class DTypeError(NpyError, TypeError):
    """Base class for element type lookup failures."""


class UnknownDTypeError(DTypeError):
    """
    The on-disk code, or the native dtype being written, is not registered.

    Attributes:
        code (str): The offending code or native dtype name.
    """
    kind = ErrorKind.UNKNOWN_DTYPE


# --- Conversion ---

class ConversionError(NpyError, TypeError):
    """
    The on-disk element type cannot be delivered as the requested type.

    Attributes:
        code (str): The on-disk dtype code, e.g. 'i4'.
        target (str): The requested native dtype name, e.g. 'int64'.
    """


class StrictMismatchError(ConversionError):
    """REQUIRE_SAME policy is active and the types differ."""
    kind = ErrorKind.STRICT_MISMATCH


class NoConversionPathError(ConversionError):
    """No conversion exists, whatever the policy."""
    kind = ErrorKind.NO_PATH


# --- Layout ---

class LayoutError(NpyError, ValueError):
    """The data cannot be arranged into the requested container."""


class UnsupportedFortranOrderError(LayoutError):
    """
    Attributes:
        shape (tuple[int, ...]): The on-disk shape.
    """
    kind = ErrorKind.UNSUPPORTED_FORTRAN_ORDER


class RankMismatchError(LayoutError):
    """
    Attributes:
        expected (int): Rank of the requested container.
        actual (int): Rank of the on-disk shape.
    """
    kind = ErrorKind.RANK_MISMATCH


# --- I/O ---

class NpyIOError(NpyError, OSError):
    """
    The underlying stream failed or ended early.

    Attributes:
        expected (int | None): Number of bytes requested.
        actual (int | None): Number of bytes obtained.
    """
    kind = ErrorKind.IO

    def __init__(
        self,
        message: str,
        *,
        expected: Optional[int] = None,
        actual: Optional[int] = None,
        **details: Any
    ):
        super().__init__(message, expected=expected, actual=actual, **details)
