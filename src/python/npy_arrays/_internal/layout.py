# npy_arrays/_internal/layout.py

"""
Conversion between the row-major byte run stored in a .npy file and the
target containers.

Matrices and cubes are column-major, so a row-major run cannot be copied into
them element for element. Instead the run is bulk-copied into a container
allocated with reversed extents, where it is already in the right memory
order, and then transposed once:

    rank 2, disk (rows, cols):
        Matrix(cols, rows) <- run;  transpose in place -> Matrix(rows, cols)

    rank 3, disk (depth, rows, cols):
        Cube(cols, rows, depth) <- run
        Cube(rows, cols, depth).slice(i) = transient.slice(i).t()

Rank-3 data is always taken to be laid out as (depth, rows, cols); the file
carries no per-axis metadata to check this against.
"""

import logging
from typing import Any, Optional, Tuple, Union

import numpy as np

from ..containers import Container, Cube, Matrix, Vector
from ..dataclasses import Shape
from ..exceptions import RankMismatchError, UnsupportedFortranOrderError
from ..types import StorageOrder
from . import registry
from .registry import RegistryEntry

logger = logging.getLogger(__name__)

Target = Union[type[np.ndarray], type[Container]]


def validate_target(target: Any) -> Target:
    """Accepts `np.ndarray` or a Container subclass as a read target."""
    if target is np.ndarray:
        return target
    if isinstance(target, type) and issubclass(target, Container) and hasattr(target, "rank"):
        return target
    raise TypeError(
        f"Unsupported target {target!r}. Use numpy.ndarray, Vector, Matrix or Cube."
    )


def target_rank(target: Target) -> Optional[int]:
    """The rank a target requires, or None if it accepts any rank."""
    return None if target is np.ndarray else target.rank


def check_layout(target: Target, shape: Shape, order: StorageOrder) -> None:
    """
    Raises:
        RankMismatchError: If the target's rank differs from the shape's rank.
        UnsupportedFortranOrderError: If column-major data has rank >= 2.
    """
    expected = target_rank(target)
    if expected is not None and expected != len(shape):
        raise RankMismatchError(
            f"Cannot read an array of shape {shape} (rank {len(shape)}) "
            f"into a {target.__name__} (rank {expected})",
            expected=expected,
            actual=len(shape),
        )
    if order is StorageOrder.COLUMN_MAJOR and len(shape) >= 2:
        raise UnsupportedFortranOrderError(
            f"Fortran-ordered arrays of rank {len(shape)} are not supported (shape {shape})",
            shape=shape,
        )


def from_bytes(target: Target, raw: Any, entry: RegistryEntry, shape: Shape) -> Any:
    """
    Builds a `target` holding the elements of `raw` in the on-disk element type.
    The caller must have run `check_layout()` first.
    """
    flat = registry.decode(entry, raw)

    if target is np.ndarray:
        # rank <= 1 column-major data is identical to row-major data
        return flat.reshape(shape).copy()

    if target.rank == 1:
        vector = target(shape[0], dtype=entry.native)
        vector.memptr()[:] = flat
        return vector

    if target.rank == 2:
        n_rows, n_cols = shape
        matrix = target(n_cols, n_rows, dtype=entry.native)
        matrix.memptr()[:] = flat
        matrix.inplace_t()
        return matrix

    n_slices, n_rows, n_cols = shape
    transient = Cube(n_cols, n_rows, n_slices, dtype=entry.native)
    transient.memptr()[:] = flat
    cube = target(n_rows, n_cols, n_slices, dtype=entry.native)
    for i in range(n_slices):
        cube.slice(i)[...] = transient.slice(i).t()
    return cube


def convert(value: Any, dtype: np.dtype) -> Any:
    """Element-wise conversion pass; layout has already been resolved."""
    logger.debug("Converting %s elements to %s", value.dtype.name, dtype.name)
    return value.astype(dtype)


def container_shape(value: Any) -> Shape:
    """The on-disk shape for a value about to be written."""
    if isinstance(value, Cube):
        return (value.n_slices, value.n_rows, value.n_cols)
    if isinstance(value, Container):
        return tuple(value.shape)
    return tuple(np.shape(value))


def to_bytes(value: Any) -> Tuple[RegistryEntry, Shape, bytes]:
    """
    Inverse of `from_bytes`: returns the registry entry, on-disk shape and
    row-major little-endian bytes of a container or array.

    Raises:
        UnknownDTypeError: If the element type has no on-disk code.
    """
    if not isinstance(value, Container):
        value = np.asarray(value)

    entry = registry.code_for(value.dtype)
    shape = container_shape(value)

    if isinstance(value, Cube):
        transient = Cube(value.n_cols, value.n_rows, value.n_slices, dtype=entry.native)
        for i in range(value.n_slices):
            transient.slice(i)[...] = value.slice(i).t()
        flat = transient.memptr()
    elif isinstance(value, Matrix):
        flat = value.t().memptr()
    elif isinstance(value, Vector):
        flat = value.memptr()
    else:
        flat = np.ascontiguousarray(value).reshape(-1)

    logger.debug("Serializing %s of shape %s as '%s'", type(value).__name__, shape, entry.code)
    return entry, shape, flat.astype(entry.disk_dtype, copy=False).tobytes()
