# npy_arrays/__init__.py
"""
Reading and writing of NumPy .npy files into NumPy arrays and column-major
vector, matrix and cube containers.
"""
from .file import Reader, Writer, open
from .containers import Container, Cube, Matrix, Vector
from .convenience import load, save
from .types import ConversionPolicy, ErrorKind, StorageOrder
from .dataclasses import ArrayDescription, DType, HeaderInfo, WriteResult
from .exceptions import (
    NpyError,
    FormatError,
    BadMagicError,
    UnsupportedVersionError,
    MalformedHeaderError,
    UnsupportedEndiannessError,
    DTypeError,
    UnknownDTypeError,
    ConversionError,
    StrictMismatchError,
    NoConversionPathError,
    LayoutError,
    UnsupportedFortranOrderError,
    RankMismatchError,
    NpyIOError,
)

__version__ = "0.1.0"

# Define what gets imported with 'from npy_arrays import *'
__all__ = [
    'open',
    'load',
    'save',
    'Reader',
    'Writer',
    'Container',
    'Vector',
    'Matrix',
    'Cube',
    'ConversionPolicy',
    'StorageOrder',
    'ErrorKind',
    'ArrayDescription',
    'DType',
    'HeaderInfo',
    'WriteResult',
    'NpyError',
    'FormatError',
    'BadMagicError',
    'UnsupportedVersionError',
    'MalformedHeaderError',
    'UnsupportedEndiannessError',
    'DTypeError',
    'UnknownDTypeError',
    'ConversionError',
    'StrictMismatchError',
    'NoConversionPathError',
    'LayoutError',
    'UnsupportedFortranOrderError',
    'RankMismatchError',
    'NpyIOError',
    '__version__',
]
