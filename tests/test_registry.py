# tests/test_registry.py
"""
Tests for the on-disk code <-> native type registry.
"""
import pytest
import numpy as np

from npy_arrays import DType, UnknownDTypeError
from npy_arrays._internal import registry

ALL_CODES = {
    "b1": np.bool_,
    "f4": np.float32,
    "f8": np.float64,
    "i1": np.int8,
    "i2": np.int16,
    "i4": np.int32,
    "i8": np.int64,
    "u1": np.uint8,
    "u2": np.uint16,
    "u4": np.uint32,
    "u8": np.uint64,
}


@pytest.mark.parametrize("code, native", ALL_CODES.items())
def test_lookup_every_registered_code(code, native):
    entry = registry.lookup(code)
    assert entry.code == code
    assert entry.native == np.dtype(native)
    assert entry.width == int(code[1:])
    assert registry.is_same(entry, native)
    assert registry.code_for(native) is entry


def test_registry_is_complete():
    assert sorted(e.code for e in registry.REGISTERED_ENTRIES) == sorted(ALL_CODES)


@pytest.mark.parametrize("code", ["f2", "c8", "c16", "U10", "O", "M8", ""])
def test_lookup_unknown_code(code):
    with pytest.raises(UnknownDTypeError, match="Unknown npy type") as excinfo:
        registry.lookup(code)
    assert excinfo.value.code == code
    # still a TypeError for callers that do not know the library's types
    assert isinstance(excinfo.value, TypeError)


def test_to_dtype_uses_canonical_endianness():
    assert registry.lookup("f8").to_dtype() == DType("f8", 8, "<")
    assert registry.lookup("u1").to_dtype() == DType("u1", 1, "|")
    assert registry.lookup("b1").to_dtype().descr == "|b1"


@pytest.mark.parametrize("code, requested, convertible", [
    ("i4", np.int64, True),    # widening
    ("i8", np.int16, True),    # narrowing
    ("u4", np.int32, True),    # signed/unsigned reinterpretation
    ("f8", np.float32, True),  # float narrowing
    ("i2", np.float64, True),
    ("f4", np.uint8, True),
    ("b1", np.bool_, True),
    ("b1", np.int32, True),    # booleans widen to numbers
    ("b1", np.float64, True),
    ("i4", np.bool_, False),   # numbers never narrow to booleans
    ("f8", np.bool_, False),
    ("f8", np.float16, False), # outside the registry
    ("i4", np.complex128, False),
    ("i4", "U4", False),
])
def test_is_convertible(code, requested, convertible):
    entry = registry.lookup(code)
    assert registry.is_convertible(entry, requested) is convertible


def test_is_same_ignores_explicit_byte_order():
    entry = registry.lookup("i4")
    assert registry.is_same(entry, "<i4")
    assert registry.is_same(entry, np.dtype(">i4"))
    assert not registry.is_same(entry, np.int64)


def test_decode_little_endian_bytes():
    raw = np.array([1, -2, 300], dtype="<i2").tobytes()
    decoded = registry.decode(registry.lookup("i2"), raw)
    assert decoded.dtype == np.int16
    np.testing.assert_array_equal(decoded, [1, -2, 300])


def test_decode_empty():
    decoded = registry.decode(registry.lookup("f8"), b"")
    assert decoded.shape == (0,)
    assert decoded.dtype == np.float64


@pytest.mark.parametrize("native", [np.float16, np.complex64, np.str_, object])
def test_code_for_unsupported_native_type(native):
    with pytest.raises(UnknownDTypeError, match="Unsupported NumPy dtype"):
        registry.code_for(native)
