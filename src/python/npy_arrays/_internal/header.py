# npy_arrays/_internal/header.py

"""
Reading and writing of the .npy preamble and header dictionary.

The header text is a Python dict literal such as

    {'descr': '<f8', 'fortran_order': False, 'shape': (2, 3), }

It is parsed with a small recursive-descent parser instead of `eval` or
`ast.literal_eval`, so every malformed input fails deterministically with a
`MalformedHeaderError` that points at the offending offset.
"""

import logging
import struct
from typing import Any, BinaryIO, Tuple

from ..dataclasses import DType, HeaderInfo, Shape
from ..exceptions import (
    BadMagicError,
    MalformedHeaderError,
    NpyIOError,
    UnsupportedEndiannessError,
    UnsupportedVersionError,
)
from ..types import ARRAY_ALIGN, MAGIC_LEN, MAGIC_PREFIX, MAX_V1_HEADER_LENGTH, StorageOrder

logger = logging.getLogger(__name__)

# (major, minor) -> struct format of the header length field
_LENGTH_FIELD_FORMATS: dict[Tuple[int, int], str] = {
    (1, 0): "<H",
    (2, 0): "<I",
}

_REQUIRED_KEYS = ("descr", "fortran_order", "shape")
_WHITESPACE = " \t\r\n"
_DIGITS = "0123456789"
_IDENTIFIERS = {"True": True, "False": False, "None": None}

# Deepest nesting of brackets accepted in a header.
_MAX_DEPTH = 64

# Upper bound on a single stream.read() call.
READ_CHUNK_SIZE = 2 ** 20


# --- Dict literal parser ---

class _DictLiteralParser:
    """
    Recursive-descent parser for the subset of Python literals found in
    .npy headers: dicts, tuples, lists, strings, numbers, True/False/None.
    """
    def __init__(self, text: str):
        self._text = text
        self._pos = 0
        self._depth = 0

    def parse(self) -> dict[str, Any]:
        self._skip_whitespace()
        if self._peek() != "{":
            self._fail("Header must be a dictionary literal")
        result = self._parse_dict()
        self._skip_whitespace()
        if self._pos != len(self._text):
            self._fail("Unexpected characters after the header dictionary")
        return result

    # -- helpers --

    def _fail(self, reason: str) -> None:
        raise MalformedHeaderError(
            f"Malformed header at offset {self._pos}: {reason}. Header: {self._text!r}",
            position=self._pos,
        )

    def _peek(self) -> str:
        return self._text[self._pos] if self._pos < len(self._text) else ""

    def _at_digit(self) -> bool:
        char = self._peek()
        return char != "" and char in _DIGITS

    def _skip_whitespace(self) -> None:
        while self._pos < len(self._text) and self._text[self._pos] in _WHITESPACE:
            self._pos += 1

    def _expect(self, char: str) -> None:
        self._skip_whitespace()
        if self._peek() != char:
            self._fail(f"Expected {char!r}")
        self._pos += 1

    # -- grammar --

    def _parse_value(self) -> Any:
        self._skip_whitespace()
        char = self._peek()
        if not char:
            self._fail("Unexpected end of header")
        if char in ("{", "(", "["):
            return self._parse_nested(char)
        if char in ("'", '"'):
            return self._parse_string()
        if char in _DIGITS or char in ("+", "-"):
            return self._parse_number()
        if char.isalpha() or char == "_":
            return self._parse_identifier()
        self._fail("Expected a value")

    def _parse_nested(self, opening: str) -> Any:
        self._depth += 1
        if self._depth > _MAX_DEPTH:
            self._fail("Header nesting too deep")
        if opening == "{":
            result = self._parse_dict()
        else:
            result = self._parse_sequence(")" if opening == "(" else "]", as_tuple=opening == "(")
        self._depth -= 1
        return result

    def _parse_dict(self) -> dict[str, Any]:
        self._expect("{")
        result: dict[str, Any] = {}
        while True:
            self._skip_whitespace()
            if self._peek() == "}":
                self._pos += 1
                return result
            key_pos = self._pos
            if self._peek() not in ("'", '"'):
                self._fail("Dictionary keys must be strings")
            key = self._parse_string()
            if key in result:
                self._pos = key_pos
                self._fail(f"Duplicate key {key!r}")
            self._expect(":")
            result[key] = self._parse_value()
            self._skip_whitespace()
            if self._peek() == ",":
                self._pos += 1
            elif self._peek() != "}":
                self._fail("Expected ',' or '}'")

    def _parse_sequence(self, closing: str, *, as_tuple: bool) -> Any:
        self._pos += 1  # opening bracket
        items: list[Any] = []
        saw_comma = False
        while True:
            self._skip_whitespace()
            if self._peek() == closing:
                self._pos += 1
                break
            items.append(self._parse_value())
            self._skip_whitespace()
            if self._peek() == ",":
                self._pos += 1
                saw_comma = True
            elif self._peek() != closing:
                self._fail(f"Expected ',' or {closing!r}")
        if not as_tuple:
            return items
        # (x) is a parenthesised value, (x,) is a one-element tuple
        if len(items) == 1 and not saw_comma:
            return items[0]
        return tuple(items)

    def _parse_string(self) -> str:
        quote = self._text[self._pos]
        self._pos += 1
        chars: list[str] = []
        while True:
            char = self._peek()
            if not char:
                self._fail("Unterminated string")
            self._pos += 1
            if char == quote:
                return "".join(chars)
            if char == "\\":
                escaped = self._peek()
                if not escaped:
                    self._fail("Unterminated string")
                self._pos += 1
                chars.append({"n": "\n", "t": "\t"}.get(escaped, escaped))
            else:
                chars.append(char)

    def _parse_number(self) -> Any:
        start = self._pos
        if self._peek() in ("+", "-"):
            self._pos += 1
        digits_start = self._pos
        while self._at_digit():
            self._pos += 1
        if self._pos == digits_start:
            self._fail("Expected digits")
        is_float = False
        if self._peek() == ".":
            is_float = True
            self._pos += 1
            while self._at_digit():
                self._pos += 1
        if self._peek() in ("e", "E"):
            is_float = True
            self._pos += 1
            if self._peek() in ("+", "-"):
                self._pos += 1
            exponent_start = self._pos
            while self._at_digit():
                self._pos += 1
            if self._pos == exponent_start:
                self._fail("Expected exponent digits")
        token = self._text[start:self._pos]
        return float(token) if is_float else int(token)

    def _parse_identifier(self) -> Any:
        start = self._pos
        while self._peek().isalnum() or self._peek() == "_":
            self._pos += 1
        name = self._text[start:self._pos]
        if name not in _IDENTIFIERS:
            self._pos = start
            self._fail(f"Unknown identifier {name!r}")
        return _IDENTIFIERS[name]


def parse_header_text(text: str) -> Tuple[DType, Shape, StorageOrder]:
    """
    Parses the header dictionary text into its three recognised fields.

    Keys may appear in any order; unrecognised keys are ignored.

    Raises:
        MalformedHeaderError: If the text is not a valid dictionary literal or
            a required key is missing or has the wrong type.
        UnsupportedEndiannessError: If `descr` declares big-endian data.
    """
    fields = _DictLiteralParser(text).parse()

    missing = [key for key in _REQUIRED_KEYS if key not in fields]
    if missing:
        raise MalformedHeaderError(
            f"Header is missing required keys: {', '.join(missing)}. Header: {text!r}"
        )

    return (
        _parse_descr(fields["descr"]),
        _parse_shape(fields["shape"]),
        _parse_fortran_order(fields["fortran_order"]),
    )


def _parse_descr(value: Any) -> DType:
    if not isinstance(value, str) or len(value) < 2:
        raise MalformedHeaderError(f"'descr' must be a string like '<f8', got {value!r}")

    endian, code = value[0], value[1:]
    if endian == ">":
        raise UnsupportedEndiannessError(
            f"Big-endian data is not supported (descr {value!r})", descr=value
        )
    if endian not in ("<", "|"):
        raise MalformedHeaderError(
            f"'descr' must start with '<', '>' or '|', got {value!r}"
        )

    # Only the code string is recorded here; registry lookup happens on read.
    width_digits = code[1:]
    width = int(width_digits) if width_digits.isdecimal() else 0
    return DType(code=code, width=width, endian=endian)


def _parse_shape(value: Any) -> Shape:
    if not isinstance(value, tuple):
        raise MalformedHeaderError(f"'shape' must be a tuple, got {value!r}")
    for extent in value:
        if isinstance(extent, bool) or not isinstance(extent, int) or extent < 0:
            raise MalformedHeaderError(
                f"'shape' entries must be non-negative integers, got {value!r}"
            )
    return value


def _parse_fortran_order(value: Any) -> StorageOrder:
    if not isinstance(value, bool):
        raise MalformedHeaderError(f"'fortran_order' must be True or False, got {value!r}")
    return StorageOrder.from_fortran_order(value)


# --- Binary preamble ---

def read_exact(stream: BinaryIO, count: int, what: str) -> bytes:
    """
    Reads exactly `count` bytes or raises NpyIOError.

    Reads in chunks of at most READ_CHUNK_SIZE, so a header that declares
    more data than the stream holds fails as a short read.
    """
    buffer = bytearray()
    while len(buffer) < count:
        request = min(count - len(buffer), READ_CHUNK_SIZE)
        try:
            chunk = stream.read(request)
        except OSError as e:
            raise NpyIOError(
                f"Failed to read {what}: {e}", expected=count, actual=len(buffer)
            ) from e
        if not chunk:
            raise NpyIOError(
                f"Unexpected end of stream while reading {what}: "
                f"expected {count} bytes, got {len(buffer)}",
                expected=count,
                actual=len(buffer),
            )
        buffer += chunk
    return bytes(buffer)


def read_header(stream: BinaryIO) -> HeaderInfo:
    """
    Reads the preamble and header dictionary from a stream positioned at the
    start of a .npy file. On success the stream is left at the data block.

    Raises:
        BadMagicError, UnsupportedVersionError, MalformedHeaderError,
        UnsupportedEndiannessError, NpyIOError
    """
    try:
        magic = stream.read(len(MAGIC_PREFIX))
    except OSError as e:
        raise NpyIOError(f"Failed to read magic prefix: {e}") from e
    if magic != MAGIC_PREFIX:
        raise BadMagicError(
            f"The magic string is not correct: expected {MAGIC_PREFIX!r}, got {magic!r}",
            actual=magic,
        )

    major, minor = read_exact(stream, 2, "format version")
    version = (major, minor)
    length_format = _LENGTH_FIELD_FORMATS.get(version)
    if length_format is None:
        raise UnsupportedVersionError(
            f"Unsupported .npy format version {major}.{minor}; "
            f"supported versions are 1.0 and 2.0",
            version=version,
        )

    length_field = read_exact(stream, struct.calcsize(length_format), "header length")
    (header_length,) = struct.unpack(length_format, length_field)
    text = read_exact(stream, header_length, "header").decode("latin1")

    dtype, shape, order = parse_header_text(text)
    info = HeaderInfo(
        dtype=dtype,
        shape=shape,
        order=order,
        version=version,
        header_length=header_length,
    )
    logger.debug(
        "Parsed .npy v%d.%d header: descr=%s shape=%s order=%s",
        major, minor, dtype.descr, shape, order.name,
    )
    return info


def build_header_text(dtype: DType, shape: Shape) -> str:
    """Renders the header dictionary in the fixed key order."""
    shape = tuple(int(extent) for extent in shape)
    return f"{{'descr': {dtype.descr!r}, 'fortran_order': False, 'shape': {shape!r}, }}"


def build_preamble(dtype: DType, shape: Shape) -> bytes:
    """
    Returns magic + version + length field + padded header for an array.

    Version 1.0 is used unless the padded header does not fit its 16-bit
    length field, in which case version 2.0 is emitted.
    """
    header = build_header_text(dtype, shape).encode("latin1")

    for version, length_format in _LENGTH_FIELD_FORMATS.items():
        padded = _pad_header(header, struct.calcsize(length_format))
        if version == (1, 0) and len(padded) > MAX_V1_HEADER_LENGTH:
            continue
        logger.debug("Writing .npy v%d.%d header of %d bytes", *version, len(padded))
        return MAGIC_PREFIX + bytes(version) + struct.pack(length_format, len(padded)) + padded

    raise ValueError(f"Header of {len(header)} bytes is too large to write")


def _pad_header(header: bytes, length_field_size: int) -> bytes:
    # Spaces plus a terminating newline so the preamble ends on ARRAY_ALIGN.
    hlen = len(header) + 1
    padlen = ARRAY_ALIGN - ((MAGIC_LEN + length_field_size + hlen) % ARRAY_ALIGN)
    return header + b" " * padlen + b"\n"
