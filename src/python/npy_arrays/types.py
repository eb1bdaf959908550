# npy_arrays/types.py

"""
Core type-safe enumerations and format constants for the npy_arrays library.
"""
from enum import Enum, IntEnum
from typing import Union

# Fixed preamble of every .npy file.
MAGIC_PREFIX = b"\x93NUMPY"
MAGIC_LEN = len(MAGIC_PREFIX) + 2

# Total preamble length (magic + version + length field + header) is padded
# to a multiple of this value.
ARRAY_ALIGN = 64

# Largest header a version 1.0 length field can describe.
MAX_V1_HEADER_LENGTH = 0xFFFF


class StorageOrder(IntEnum):
    """
    Element order of the data block, as recorded by the `fortran_order` key.
    """
    ROW_MAJOR = 0     # C order, last axis varies fastest
    COLUMN_MAJOR = 1  # Fortran order, first axis varies fastest

    @classmethod
    def from_fortran_order(cls, fortran_order: bool) -> "StorageOrder":
        return cls.COLUMN_MAJOR if fortran_order else cls.ROW_MAJOR

    @property
    def fortran_order(self) -> bool:
        return self is StorageOrder.COLUMN_MAJOR


class ConversionPolicy(Enum):
    """
    Governs whether a Reader may convert between the on-disk element type and
    the requested element type.

    ALLOW_LOSSY only widens the set of accepted conversions; it never invents a
    conversion the type registry does not know.
    """
    ALLOW_LOSSY = "allow_lossy"
    REQUIRE_SAME = "require_same"

    @classmethod
    def coerce(cls, value: Union["ConversionPolicy", str]) -> "ConversionPolicy":
        """Accepts an enum member or its (case-insensitive) name or value."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            normalized = value.strip().lower()
            for member in cls:
                if normalized in (member.value, member.name.lower()):
                    return member
        valid = ", ".join(repr(m.value) for m in cls)
        raise ValueError(f"Unsupported conversion policy: {value!r}. Must be one of {valid}.")


class ErrorKind(IntEnum):
    """
    Stable identifiers for every failure the codec can report.

    Exposed as the `kind` attribute of each library exception.
    """
    # Format
    BAD_MAGIC = 1
    UNSUPPORTED_VERSION = 2
    MALFORMED_HEADER = 3
    UNSUPPORTED_ENDIANNESS = 4

    # Types
    UNKNOWN_DTYPE = 10

    # Conversion
    STRICT_MISMATCH = 20
    NO_PATH = 21

    # Layout
    UNSUPPORTED_FORTRAN_ORDER = 30
    RANK_MISMATCH = 31

    # I/O
    IO = 40
