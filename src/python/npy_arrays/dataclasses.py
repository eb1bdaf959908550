# npy_arrays/dataclasses.py
"""
Dataclasses for structured data within the npy_arrays library.
"""
from dataclasses import dataclass
from math import prod
from typing import Tuple

from .types import StorageOrder

Shape = Tuple[int, ...]


@dataclass(frozen=True, slots=True)
class DType:
    """An on-disk element type as spelled by the header's `descr` value."""
    code: str    # kind letter plus byte width, e.g. 'f8'
    width: int   # bytes per element
    endian: str  # '<' or '|'

    @property
    def descr(self) -> str:
        return f"{self.endian}{self.code}"


@dataclass(frozen=True, slots=True)
class HeaderInfo:
    """Information extracted from the file header."""
    dtype: DType
    shape: Shape
    order: StorageOrder
    version: Tuple[int, int]
    header_length: int

    @property
    def element_count(self) -> int:
        # prod(()) == 1, a rank-0 array holds one element
        return prod(self.shape)

    @property
    def data_offset(self) -> int:
        length_field = 2 if self.version == (1, 0) else 4
        return 8 + length_field + self.header_length


@dataclass(frozen=True, slots=True)
class ArrayDescription:
    """Read-only summary returned by `Reader.describe()`."""
    dtype: DType
    shape: Shape
    order: StorageOrder


@dataclass(frozen=True, slots=True)
class WriteResult:
    """Details of a write operation."""
    dtype: DType
    shape: Shape
    version: Tuple[int, int]
    header_length: int
    data_size: int
