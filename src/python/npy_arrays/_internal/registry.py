# npy_arrays/_internal/registry.py

"""
Type registry: maps on-disk dtype codes to native NumPy element types.

Every read goes through `lookup()`, a single exhaustive dispatch over the
registered codes. The requested native type is checked against the entry with
`is_same()` / `is_convertible()` before any data is decoded.
"""

from dataclasses import dataclass
from typing import Any, TypeAlias

import numpy as np

from ..dataclasses import DType
from ..exceptions import UnknownDTypeError

# Anything np.dtype() accepts: np.float64, 'int32', bool, np.dtype('u1'), ...
DTypeLike: TypeAlias = Any


@dataclass(frozen=True, slots=True)
class RegistryEntry:
    """One registered on-disk code and the native type it decodes to."""
    code: str
    native: np.dtype

    @property
    def width(self) -> int:
        return self.native.itemsize

    @property
    def kind(self) -> str:
        return self.native.kind

    @property
    def endian(self) -> str:
        # single-byte types carry no byte order
        return "|" if self.width == 1 else "<"

    @property
    def disk_dtype(self) -> np.dtype:
        """Little-endian dtype matching the on-disk bytes."""
        return self.native.newbyteorder("<") if self.width > 1 else self.native

    def to_dtype(self) -> DType:
        return DType(code=self.code, width=self.width, endian=self.endian)


_B1 = RegistryEntry("b1", np.dtype(np.bool_))
_F4 = RegistryEntry("f4", np.dtype(np.float32))
_F8 = RegistryEntry("f8", np.dtype(np.float64))
_I1 = RegistryEntry("i1", np.dtype(np.int8))
_I2 = RegistryEntry("i2", np.dtype(np.int16))
_I4 = RegistryEntry("i4", np.dtype(np.int32))
_I8 = RegistryEntry("i8", np.dtype(np.int64))
_U1 = RegistryEntry("u1", np.dtype(np.uint8))
_U2 = RegistryEntry("u2", np.dtype(np.uint16))
_U4 = RegistryEntry("u4", np.dtype(np.uint32))
_U8 = RegistryEntry("u8", np.dtype(np.uint64))

REGISTERED_ENTRIES: tuple[RegistryEntry, ...] = (
    _B1, _F4, _F8, _I1, _I2, _I4, _I8, _U1, _U2, _U4, _U8,
)

# Native dtype -> canonical on-disk code, used when writing.
_NATIVE_TO_ENTRY: dict[np.dtype, RegistryEntry] = {
    entry.native: entry for entry in REGISTERED_ENTRIES
}

_NUMERIC_KINDS = frozenset("iuf")


def lookup(code: str) -> RegistryEntry:
    """
    Resolves an on-disk code such as 'f8' to its registry entry.

    Raises:
        UnknownDTypeError: If the code is not registered.
    """
    match code:
        case "b1":
            return _B1
        case "f4":
            return _F4
        case "f8":
            return _F8
        case "i1":
            return _I1
        case "i2":
            return _I2
        case "i4":
            return _I4
        case "i8":
            return _I8
        case "u1":
            return _U1
        case "u2":
            return _U2
        case "u4":
            return _U4
        case "u8":
            return _U8
        case _:
            supported = ", ".join(entry.code for entry in REGISTERED_ENTRIES)
            raise UnknownDTypeError(
                f"Unknown npy type: '{code}'. Supported types are: {supported}",
                code=code,
            )


def native_dtype(requested: DTypeLike) -> np.dtype:
    """Normalizes a requested element type to a native-byte-order np.dtype."""
    dtype = np.dtype(requested)
    return dtype.newbyteorder("=") if dtype.byteorder in ("<", ">") else dtype


def is_same(entry: RegistryEntry, requested: DTypeLike) -> bool:
    """True iff the requested type bit-matches the on-disk type."""
    return native_dtype(requested) == entry.native


def is_convertible(entry: RegistryEntry, requested: DTypeLike) -> bool:
    """
    True iff a numeric conversion from the on-disk type to the requested type
    exists, even if it may lose precision or range.

    Integer and float kinds convert to each other in any direction. Booleans
    convert to bool and widen to any numeric kind. Nothing converts to bool
    except bool, and types outside the registry have no path at all.
    """
    target = native_dtype(requested)
    if target not in _NATIVE_TO_ENTRY:
        return False
    if entry.kind == "b":
        return True
    return target.kind in _NUMERIC_KINDS


def decode(entry: RegistryEntry, raw: Any) -> np.ndarray:
    """
    Reinterprets little-endian raw bytes as a flat array of the entry's
    native type.
    """
    if len(raw) == 0:
        return np.empty(0, dtype=entry.native)
    flat = np.frombuffer(raw, dtype=entry.disk_dtype)
    if flat.dtype != entry.native:
        flat = flat.astype(entry.native)
    return flat


def code_for(native: DTypeLike) -> RegistryEntry:
    """
    Reverse lookup: native element type -> canonical on-disk entry.

    Raises:
        UnknownDTypeError: If the native type has no on-disk code.
    """
    dtype = native_dtype(native)
    try:
        return _NATIVE_TO_ENTRY[dtype]
    except KeyError:
        supported = ", ".join(entry.native.name for entry in REGISTERED_ENTRIES)
        raise UnknownDTypeError(
            f"Unsupported NumPy dtype: '{dtype.name}'. Supported types are: {supported}",
            code=dtype.name,
        ) from None
