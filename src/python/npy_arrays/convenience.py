# npy_arrays/convenience.py
"""
High-level convenience functions for common single-array operations.
"""
from typing import Any, Union

import numpy as np

from .file import PathType, Reader, Writer, _open_stream
from .dataclasses import WriteResult
from .types import ConversionPolicy


def load(
    filepath: PathType,
    target: Any = np.ndarray,
    *,
    dtype: Any = None,
    conversion: Union[ConversionPolicy, str] = ConversionPolicy.ALLOW_LOSSY,
) -> Any:
    """
    Loads the array stored in a .npy file.

    Args:
        filepath: The path to the .npy file.
        target: `numpy.ndarray` (default), `Vector`, `Matrix` or `Cube`.
        dtype: (Optional) The requested element type. Defaults to the
               on-disk type.
        conversion: The conversion policy applied when `dtype` differs from
                    the on-disk type.

    Returns:
        An instance of `target` holding the array.
    """
    with Reader(_open_stream(filepath, "rb"), conversion=conversion, close_stream=True) as f:
        return f.value(target, dtype=dtype)


def save(filepath: PathType, data: Any) -> WriteResult:
    """
    Saves a single array or container to a new .npy file.

    Args:
        filepath: The path to the file to be created.
        data: A `Vector`, `Matrix`, `Cube` or NumPy array.
    """
    with Writer(_open_stream(filepath, "wb"), close_stream=True) as f:
        return f.write(data)
