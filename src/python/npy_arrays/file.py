# npy_arrays/file.py
"""High-level Reader, Writer, and the main `open` factory function."""

import builtins
import logging
from os import PathLike
from typing import Any, BinaryIO, Optional, Union

import numpy as np

from .abc import NpyFileBase
from .dataclasses import ArrayDescription, DType, HeaderInfo, Shape, WriteResult
from .exceptions import NoConversionPathError, NpyIOError, StrictMismatchError
from .types import MAGIC_LEN, ConversionPolicy, StorageOrder
from ._internal import header, layout, registry

logger = logging.getLogger(__name__)

PathType = Union[str, "PathLike[str]"]


def open(
    path: PathType,
    mode: str = 'r',
    *,
    conversion: Optional[Union[ConversionPolicy, str]] = None,
) -> Union["Reader", "Writer"]:
    """
    Opens a .npy file for reading or writing.
    This function is the primary entry point for the library.

    Args:
        path: Path to the .npy file.
        mode (str): 'r' (read-only) or 'w' (write, truncates if exists).
        conversion: For 'r' mode only. The ConversionPolicy (or its name)
            applied when the array is read. Defaults to ALLOW_LOSSY.

    Returns:
        A Reader or Writer object, typically used within a `with` statement.
        The returned object owns the file and closes it on `close()`.

    Raises:
        NpyIOError: If the file cannot be opened.
        FormatError: In 'r' mode, if the header cannot be read.
        ValueError: If mode or arguments are invalid.
    """
    if mode == 'r':
        policy = ConversionPolicy.ALLOW_LOSSY if conversion is None else conversion
        stream = _open_stream(path, "rb")
        return Reader(stream, conversion=policy, close_stream=True)
    elif mode == 'w':
        if conversion is not None:
            raise ValueError("conversion can only be provided in 'r' mode.")
        stream = _open_stream(path, "wb")
        return Writer(stream, close_stream=True)
    raise ValueError(f"Unsupported mode: '{mode}'. Must be 'r' or 'w'.")


def _open_stream(path: PathType, mode: str) -> BinaryIO:
    try:
        return builtins.open(path, mode)
    except OSError as e:
        raise NpyIOError(f"Cannot open '{path}': {e}") from e


class Reader(NpyFileBase):
    """
    A handle on one array in a .npy stream.

    The header is parsed on construction; the data block is read once, by the
    first call to `value()`.
    """
    def __init__(
        self,
        stream: BinaryIO,
        *,
        conversion: Union[ConversionPolicy, str] = ConversionPolicy.ALLOW_LOSSY,
        close_stream: bool = False,
    ):
        self._stream = stream
        self._close_stream = close_stream
        self._closed = False
        self._consumed = False
        try:
            self._conversion = ConversionPolicy.coerce(conversion)
            self._header: HeaderInfo = header.read_header(stream)
        except BaseException:
            self.close()
            raise

    @property
    def header(self) -> HeaderInfo:
        return self._header

    @property
    def dtype(self) -> DType:
        return self._header.dtype

    @property
    def shape(self) -> Shape:
        return self._header.shape

    @property
    def order(self) -> StorageOrder:
        return self._header.order

    def is_fortran_order(self) -> bool:
        return self._header.order.fortran_order

    @property
    def conversion(self) -> ConversionPolicy:
        return self._conversion

    def describe(self) -> ArrayDescription:
        """Returns the dtype, shape and storage order; valid at any time."""
        return ArrayDescription(
            dtype=self._header.dtype,
            shape=self._header.shape,
            order=self._header.order,
        )

    def value(self, target: Any = np.ndarray, dtype: Any = None) -> Any:
        """
        Reads the data block into a new container.

        Args:
            target: `numpy.ndarray` (any rank, returned in C order) or one of
                `Vector`, `Matrix`, `Cube`, whose rank must match the file.
            dtype: The requested element type. Defaults to the on-disk type.

        Returns:
            An instance of `target` holding the array.

        Raises:
            UnknownDTypeError: If the on-disk code is not registered.
            NoConversionPathError: If no conversion to `dtype` exists.
            StrictMismatchError: If the policy is REQUIRE_SAME and the types differ.
            RankMismatchError, UnsupportedFortranOrderError: If the data cannot
                be laid out as `target`.
            NpyIOError: If the stream ends before the data block does.
            ValueError: If the handle is closed or the data was already read.
        """
        self._check_open()
        if self._consumed:
            raise ValueError(
                "The array data has already been read. Open a new Reader to read it again."
            )

        target = layout.validate_target(target)
        entry = registry.lookup(self._header.dtype.code)
        requested = entry.native if dtype is None else registry.native_dtype(dtype)
        self._check_conversion(entry, requested)
        layout.check_layout(target, self._header.shape, self._header.order)

        byte_count = entry.width * self._header.element_count
        logger.debug(
            "Reading %d bytes of '%s' %s into %s",
            byte_count, entry.code, self._header.shape, target.__name__,
        )
        self._consumed = True
        raw = header.read_exact(self._stream, byte_count, "array data")

        result = layout.from_bytes(target, raw, entry, self._header.shape)
        if not registry.is_same(entry, requested):
            result = layout.convert(result, requested)
        return result

    def _check_conversion(self, entry: registry.RegistryEntry, requested: np.dtype) -> None:
        code = self._header.dtype.code
        if not registry.is_convertible(entry, requested):
            raise NoConversionPathError(
                f"Cannot convert from numpy type '{code}' to '{requested.name}'. "
                "The current conversion policy would allow it, but there is no known "
                "conversion available.",
                code=code,
                target=requested.name,
            )
        if self._conversion is ConversionPolicy.REQUIRE_SAME and not registry.is_same(entry, requested):
            raise StrictMismatchError(
                f"Cannot convert from numpy type '{code}' to '{requested.name}'. "
                "The current conversion policy requires equal types.",
                code=code,
                target=requested.name,
            )

    def close(self) -> None:
        if not self._closed:
            self._closed = True
            if self._close_stream:
                self._stream.close()

    @property
    def closed(self) -> bool:
        return self._closed

    def __str__(self) -> str:
        dims = "".join(f"{extent}, " for extent in self._header.shape)
        return (
            f"Numpy array (dtype: '{self._header.dtype.descr}', "
            f"fortranOrder: {self.is_fortran_order()}, shape: ({dims}))"
        )

    def __repr__(self) -> str:
        return f"<Reader {self}>"


class Writer(NpyFileBase):
    """
    A handle for writing one array to a .npy stream.
    Created via `npy_arrays.open(..., mode='w')` or directly over a stream.
    """
    def __init__(self, stream: BinaryIO, *, close_stream: bool = False):
        self._stream = stream
        self._close_stream = close_stream
        self._closed = False
        self._written = False

    def write(self, data: Any) -> WriteResult:
        """
        Writes the header and data of an array.

        The element type and shape are inferred from `data`; the data is always
        stored in row-major order whatever the container's own storage order.

        Args:
            data: A `Vector`, `Matrix`, `Cube` or anything `numpy.asarray` accepts.

        Returns:
            A WriteResult describing what was written.

        Raises:
            UnknownDTypeError: If the element type has no on-disk code.
            NpyIOError: If the stream fails.
            ValueError: If the handle is closed, already holds an array (or a
                failed attempt at one), or the header is too large to encode.
        """
        self._check_open()
        if self._written:
            raise ValueError("A .npy file holds a single array and this Writer has already written one.")

        entry, shape, payload = layout.to_bytes(data)
        dtype = entry.to_dtype()
        preamble = header.build_preamble(dtype, shape)
        # A failed write leaves a partial file behind, so one attempt only
        self._written = True
        try:
            self._stream.write(preamble)
            self._stream.write(payload)
        except OSError as e:
            raise NpyIOError(f"Failed to write array data: {e}") from e

        version = (preamble[6], preamble[7])
        length_field = 2 if version == (1, 0) else 4
        return WriteResult(
            dtype=dtype,
            shape=shape,
            version=version,
            header_length=len(preamble) - MAGIC_LEN - length_field,
            data_size=len(payload),
        )

    def flush(self) -> None:
        """Flushes any buffered data to the underlying stream."""
        self._check_open()
        try:
            self._stream.flush()
        except OSError as e:
            raise NpyIOError(f"Failed to flush stream: {e}") from e

    def close(self) -> None:
        if self._closed:
            return
        try:
            self.flush()
        finally:
            self._closed = True
            if self._close_stream:
                self._stream.close()

    @property
    def closed(self) -> bool:
        return self._closed
