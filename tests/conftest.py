# tests/conftest.py
"""
Pytest configuration and shared fixtures for the test suite.
"""
import struct

import pytest
from pathlib import Path
import numpy as np


@pytest.fixture(scope="session")
def matrix_file(tmp_path_factory) -> Path:
    """
    A 2x3 int32 array [[1, 2, 3], [4, 5, 6]] written by numpy itself.
    This runs only once per test session and provides the file path to tests.
    """
    filepath = tmp_path_factory.getbasetemp() / "matrix_2x3_i4.npy"
    np.save(filepath, np.array([[1, 2, 3], [4, 5, 6]], dtype=np.int32))
    return filepath


@pytest.fixture(scope="session")
def cube_file(tmp_path_factory) -> Path:
    """A (2, 3, 4) int32 array holding 0..23 in C order."""
    filepath = tmp_path_factory.getbasetemp() / "cube_2x3x4_i4.npy"
    np.save(filepath, np.arange(24, dtype=np.int32).reshape(2, 3, 4))
    return filepath


@pytest.fixture(scope="session")
def fortran_matrix_file(tmp_path_factory) -> Path:
    """A 2x3 float64 array saved with fortran_order: True."""
    filepath = tmp_path_factory.getbasetemp() / "matrix_fortran_f8.npy"
    np.save(filepath, np.asfortranarray(np.arange(6, dtype=np.float64).reshape(2, 3)))
    return filepath


@pytest.fixture
def npy_bytes():
    """
    Returns a factory that assembles a raw .npy byte string from a header
    text, so tests can exercise headers numpy itself would never write.
    """
    def build(header: str, data: bytes = b"", version: tuple = (1, 0)) -> bytes:
        encoded = header.encode("latin1")
        length_format = "<H" if version[0] == 1 else "<I"
        return (
            b"\x93NUMPY"
            + bytes(version)
            + struct.pack(length_format, len(encoded))
            + encoded
            + data
        )
    return build
