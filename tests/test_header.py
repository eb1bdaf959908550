# tests/test_header.py
"""
Tests for the preamble reader, the header dictionary parser and the header
serializer.
"""
import io

import pytest
import numpy as np

from npy_arrays import (
    BadMagicError,
    DType,
    ErrorKind,
    MalformedHeaderError,
    NpyIOError,
    StorageOrder,
    UnsupportedEndiannessError,
    UnsupportedVersionError,
)
from npy_arrays._internal import header as header_module
from npy_arrays._internal.header import (
    build_header_text,
    build_preamble,
    parse_header_text,
    read_exact,
    read_header,
)

# --- Dictionary parser ---

def test_parse_standard_header():
    dtype, shape, order = parse_header_text(
        "{'descr': '<f8', 'fortran_order': False, 'shape': (2, 3), }"
    )
    assert dtype == DType(code="f8", width=8, endian="<")
    assert dtype.descr == "<f8"
    assert shape == (2, 3)
    assert order is StorageOrder.ROW_MAJOR


def test_parse_is_key_order_independent():
    dtype, shape, order = parse_header_text(
        "{'shape': (7,), 'fortran_order': True, 'descr': '|b1'}"
    )
    assert dtype.code == "b1"
    assert dtype.endian == "|"
    assert shape == (7,)
    assert order is StorageOrder.COLUMN_MAJOR


def test_parse_ignores_unknown_keys():
    _, shape, _ = parse_header_text(
        "{'descr': '<i4', 'extra': [1, -2.5e3, \"x\", {'nested': None}], "
        "'fortran_order': False, 'shape': (4, 5)}"
    )
    assert shape == (4, 5)


@pytest.mark.parametrize("text, expected", [
    ("()", ()),
    ("(3,)", (3,)),
    ("(2, 3)", (2, 3)),
    ("(2, 3,)", (2, 3)),
    ("( 0 , 4 )", (0, 4)),
])
def test_parse_shapes(text, expected):
    _, shape, _ = parse_header_text(
        f"{{'descr': '<u2', 'fortran_order': False, 'shape': {text}, }}"
    )
    assert shape == expected


def test_parse_tolerates_padding_and_double_quotes():
    text = '{"descr": "<i8", "fortran_order": False, "shape": (8,), }' + " " * 40 + "\n"
    dtype, shape, _ = parse_header_text(text)
    assert dtype.code == "i8"
    assert shape == (8,)


def test_parse_records_unregistered_codes():
    # Unknown codes are only rejected when the data is read.
    dtype, _, _ = parse_header_text("{'descr': '<c16', 'fortran_order': False, 'shape': (1,)}")
    assert dtype.code == "c16"
    assert dtype.width == 16


@pytest.mark.parametrize("text", [
    "",
    "[1, 2]",
    "{'descr': '<f8', 'fortran_order': False}",
    "{'descr': '<f8', 'shape': (1,)}",
    "{'descr': '<f8', 'fortran_order': maybe, 'shape': (1,)}",
    "{'descr': '<f8', 'fortran_order': 1, 'shape': (1,)}",
    "{'descr': '<f8', 'fortran_order': False, 'shape': (1, -2)}",
    "{'descr': '<f8', 'fortran_order': False, 'shape': (3)}",
    "{'descr': '<f8', 'fortran_order': False, 'shape': [3]}",
    "{'descr': '<f8', 'fortran_order': False, 'shape': (True,)}",
    "{'descr': '<f8', 'fortran_order': False, 'shape': (1.5,)}",
    "{'descr': [('a', '<f8')], 'fortran_order': False, 'shape': (1,)}",
    "{'descr': '=f8', 'fortran_order': False, 'shape': (1,)}",
    "{'descr': '<f8, 'fortran_order': False, 'shape': (1,)}",
    "{'descr': '<f8', 'fortran_order': False, 'shape': (1,)} trailing",
    "{'descr': '<f8', 'fortran_order': False, 'shape': (1,)",
    "{'descr': '<f8' 'fortran_order': False, 'shape': (1,)}",
    "{'descr': '<f8', 'descr': '<i4', 'fortran_order': False, 'shape': (1,)}",
    "{descr: '<f8', 'fortran_order': False, 'shape': (1,)}",
    "{'x': " + "[" * 5000,
    "{'x': " + "(" * 100 + ")" * 100 + ", 'descr': '<f8', 'fortran_order': False, 'shape': (1,)}",
])
def test_parse_malformed_headers(text):
    with pytest.raises(MalformedHeaderError) as excinfo:
        parse_header_text(text)
    assert excinfo.value.kind is ErrorKind.MALFORMED_HEADER


def test_malformed_header_reports_position():
    text = "{'descr': '<f8', 'fortran_order': Nope, 'shape': (1,)}"
    with pytest.raises(MalformedHeaderError, match="Unknown identifier 'Nope'") as excinfo:
        parse_header_text(text)
    assert excinfo.value.position == text.index("Nope")


def test_parse_accepts_moderate_nesting_in_unknown_keys():
    nested = "[" * 10 + "]" * 10
    dtype, shape, _ = parse_header_text(
        f"{{'extra': {nested}, 'descr': '<i1', 'fortran_order': False, 'shape': (2,)}}"
    )
    assert dtype.code == "i1"
    assert shape == (2,)


def test_parse_rejects_deep_nesting():
    text = "{'x': " + "{'y': " * 200
    with pytest.raises(MalformedHeaderError, match="nesting too deep"):
        parse_header_text(text)


def test_parse_rejects_big_endian():
    with pytest.raises(UnsupportedEndiannessError, match="Big-endian") as excinfo:
        parse_header_text("{'descr': '>f8', 'fortran_order': False, 'shape': (1,)}")
    assert excinfo.value.descr == ">f8"
    assert str(excinfo.value).endswith("(kind=UNSUPPORTED_ENDIANNESS)")


# --- Binary preamble ---

def test_read_header_leaves_stream_at_data(npy_bytes):
    header = "{'descr': '<i2', 'fortran_order': False, 'shape': (2,), }"
    stream = io.BytesIO(npy_bytes(header, data=b"\x01\x00\x02\x00"))

    info = read_header(stream)

    assert info.version == (1, 0)
    assert info.header_length == len(header)
    assert info.data_offset == 10 + len(header)
    assert stream.tell() == info.data_offset
    assert stream.read() == b"\x01\x00\x02\x00"


def test_read_header_version_2(npy_bytes):
    header = "{'descr': '<f4', 'fortran_order': False, 'shape': (3, 1), }"
    stream = io.BytesIO(npy_bytes(header, version=(2, 0)))

    info = read_header(stream)

    assert info.version == (2, 0)
    assert info.shape == (3, 1)
    assert stream.tell() == 12 + len(header)


def test_read_header_written_by_numpy_version_2(tmp_path):
    filepath = tmp_path / "v2.npy"
    with open(filepath, "wb") as f:
        np.lib.format.write_array(f, np.zeros((4, 2), dtype=np.uint16), version=(2, 0))

    with open(filepath, "rb") as f:
        info = read_header(f)

    assert info.version == (2, 0)
    assert info.dtype.descr == "<u2"
    assert info.shape == (4, 2)


@pytest.mark.parametrize("prefix", [
    b"\x93NUMPZ\x01\x00",
    b"NUMPY\x93\x01\x00",
    b"PK\x03\x04 not an npy file at all",
    b"\x93NUM",
    b"",
])
def test_bad_magic(prefix):
    stream = io.BytesIO(prefix)
    with pytest.raises(BadMagicError, match="magic string is not correct") as excinfo:
        read_header(stream)
    assert excinfo.value.actual == prefix[:6]
    # nothing beyond the magic prefix was consumed
    assert stream.tell() == min(len(prefix), 6)


@pytest.mark.parametrize("version", [(1, 1), (3, 0), (0, 0), (2, 1)])
def test_unsupported_versions(npy_bytes, version):
    header = "{'descr': '<f8', 'fortran_order': False, 'shape': (1,), }"
    with pytest.raises(UnsupportedVersionError) as excinfo:
        read_header(io.BytesIO(npy_bytes(header, version=version)))
    assert excinfo.value.version == version


def test_truncated_header_is_an_io_error(npy_bytes):
    full = npy_bytes("{'descr': '<f8', 'fortran_order': False, 'shape': (1,), }")
    with pytest.raises(NpyIOError, match="Unexpected end of stream") as excinfo:
        read_header(io.BytesIO(full[:-5]))
    assert excinfo.value.actual < excinfo.value.expected


def test_truncated_version_is_an_io_error():
    with pytest.raises(NpyIOError):
        read_header(io.BytesIO(b"\x93NUMPY\x01"))


# --- Serializer ---

def test_build_header_text_has_fixed_key_order():
    text = build_header_text(DType("i4", 4, "<"), (2, 3))
    assert text == "{'descr': '<i4', 'fortran_order': False, 'shape': (2, 3), }"
    assert build_header_text(DType("b1", 1, "|"), (5,)).endswith("'shape': (5,), }")
    assert build_header_text(DType("f8", 8, "<"), ()).endswith("'shape': (), }")


@pytest.mark.parametrize("shape", [(), (1,), (10, 20), (3, 4, 5), (123456789, 2, 1)])
def test_preamble_is_aligned_and_parsable(shape):
    preamble = build_preamble(DType("f8", 8, "<"), shape)

    assert len(preamble) % 64 == 0
    assert preamble[6:8] == b"\x01\x00"
    assert preamble.endswith(b"\n")

    info = read_header(io.BytesIO(preamble))
    assert info.shape == shape
    assert info.dtype.descr == "<f8"
    assert info.order is StorageOrder.ROW_MAJOR
    assert info.data_offset == len(preamble)


def test_preamble_switches_to_version_2_for_large_headers():
    shape = (1,) * 25000  # header text well above 65535 bytes
    preamble = build_preamble(DType("u1", 1, "|"), shape)

    assert preamble[6:8] == b"\x02\x00"
    assert len(preamble) % 64 == 0

    info = read_header(io.BytesIO(preamble))
    assert info.version == (2, 0)
    assert info.shape == shape
    assert info.header_length > 0xFFFF


def test_preamble_too_large_for_any_version(monkeypatch):
    monkeypatch.setattr(header_module, "_LENGTH_FIELD_FORMATS", {(1, 0): "<H"})
    with pytest.raises(ValueError, match="too large to write") as excinfo:
        build_preamble(DType("u1", 1, "|"), (1,) * 25000)
    assert not isinstance(excinfo.value, MalformedHeaderError)


class _TrickleStream(io.BytesIO):
    """Returns at most three bytes per read() call."""
    def read(self, size=-1):
        return super().read(3 if size is None or size < 0 else min(size, 3))


def test_read_exact_collects_short_reads():
    assert read_exact(_TrickleStream(b"0123456789"), 10, "data") == b"0123456789"


def test_read_exact_caps_each_read(monkeypatch):
    requests = []

    class _RecordingStream(io.BytesIO):
        def read(self, size=-1):
            requests.append(size)
            return super().read(size)

    monkeypatch.setattr(header_module, "READ_CHUNK_SIZE", 4)
    assert read_exact(_RecordingStream(b"abcdefghij"), 10, "data") == b"abcdefghij"
    assert requests == [4, 4, 2]


def test_header_over_short_reads(npy_bytes):
    header = "{'descr': '<u2', 'fortran_order': False, 'shape': (3,), }"
    info = read_header(_TrickleStream(npy_bytes(header)))
    assert info.shape == (3,)
    assert info.dtype.code == "u2"


def test_preamble_is_readable_by_numpy():
    preamble = build_preamble(DType("i2", 2, "<"), (2, 2))
    stream = io.BytesIO(preamble + np.arange(4, dtype="<i2").tobytes())
    loaded = np.load(stream)
    np.testing.assert_array_equal(loaded, np.array([[0, 1], [2, 3]], dtype=np.int16))
