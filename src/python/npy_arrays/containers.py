# npy_arrays/containers.py
"""
Column-major, NumPy-backed containers used as read/write targets.

They mirror the storage convention of linear-algebra libraries: elements are
stored column by column (Fortran order), and a cube is a stack of such
matrices ("slices") along its third axis. Indexing is `v[i]`, `m[row, col]`
and `c[row, col, slice]`.
"""
from typing import Any, ClassVar, Tuple, TypeVar

import numpy as np

_C = TypeVar("_C", bound="Container")


class Container:
    """Common base: a Fortran-ordered ndarray of fixed rank."""
    rank: ClassVar[int]

    __slots__ = ("_data",)

    def __init__(self, *extents: int, dtype: Any = np.float64):
        if len(extents) != self.rank:
            raise ValueError(
                f"{type(self).__name__} takes {self.rank} extents, got {len(extents)}"
            )
        if any(extent < 0 for extent in extents):
            raise ValueError(f"Extents must be non-negative, got {extents}")
        self._data = np.zeros(extents, dtype=dtype, order="F")

    @classmethod
    def _wrap(cls: type[_C], data: np.ndarray) -> _C:
        obj = cls.__new__(cls)
        obj._data = data
        return obj

    @classmethod
    def from_numpy(cls: type[_C], array: Any) -> _C:
        """Copies an array of matching rank into column-major storage."""
        array = np.asarray(array)
        if array.ndim != cls.rank:
            raise ValueError(
                f"{cls.__name__} needs a {cls.rank}-D array, got {array.ndim}-D"
            )
        return cls._wrap(np.array(array, order="F", copy=True))

    @property
    def dtype(self) -> np.dtype:
        return self._data.dtype

    @property
    def shape(self) -> Tuple[int, ...]:
        return self._data.shape

    @property
    def n_elem(self) -> int:
        return self._data.size

    def memptr(self) -> np.ndarray:
        """
        Writable flat view of the elements in storage (column-major) order.
        """
        return self._data.reshape(-1, order="F")

    def astype(self: _C, dtype: Any) -> _C:
        """Element-wise conversion into a new container of the same kind."""
        return self._wrap(self._data.astype(dtype, order="F", casting="unsafe"))

    def to_numpy(self) -> np.ndarray:
        return self._data

    def __array__(self, dtype: Any = None, copy: Any = None) -> np.ndarray:
        if copy:
            return np.array(self._data, dtype=dtype, copy=True)
        return np.asarray(self._data, dtype=dtype)

    def __getitem__(self, key: Any) -> Any:
        return self._data[key]

    def __setitem__(self, key: Any, value: Any) -> None:
        if isinstance(value, Container):
            value = value._data
        self._data[key] = value

    def __repr__(self) -> str:
        return f"{type(self).__name__}(shape={self.shape}, dtype={self.dtype.name})"


class Vector(Container):
    """A column vector of `n_elem` elements."""
    rank = 1

    __slots__ = ()


class Matrix(Container):
    """An `n_rows` x `n_cols` matrix stored column by column."""
    rank = 2

    __slots__ = ()

    @property
    def n_rows(self) -> int:
        return self._data.shape[0]

    @property
    def n_cols(self) -> int:
        return self._data.shape[1]

    def t(self) -> "Matrix":
        """Returns the transpose as a new column-major matrix."""
        return Matrix._wrap(np.asfortranarray(self._data.T))

    def inplace_t(self) -> None:
        """Transposes this matrix, swapping its extents."""
        self._data = np.asfortranarray(self._data.T)


class Cube(Container):
    """
    An `n_rows` x `n_cols` x `n_slices` cube; each slice is a column-major
    matrix and slices are stored one after another.
    """
    rank = 3

    __slots__ = ()

    @property
    def n_rows(self) -> int:
        return self._data.shape[0]

    @property
    def n_cols(self) -> int:
        return self._data.shape[1]

    @property
    def n_slices(self) -> int:
        return self._data.shape[2]

    def slice(self, index: int) -> Matrix:
        """
        Returns slice `index` as a Matrix sharing this cube's memory, so
        `cube.slice(i)[...] = other` writes through.
        """
        if not -self.n_slices <= index < self.n_slices:
            raise IndexError(f"Slice index {index} out of range for {self.n_slices} slices")
        return Matrix._wrap(self._data[:, :, index])
