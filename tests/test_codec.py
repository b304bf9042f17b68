import struct

import pytest

from ewfreader.pyewf.codec import (
    bytes_to_long,
    bytes_to_string,
    bytes_to_uint,
    is_positive_int,
    make_byte_log,
)


@pytest.mark.parametrize("value", [0, -(2**63), 2**63 - 1, 0x0102030405060708])
def test_bytes_to_long(value):
    assert bytes_to_long(struct.pack("<q", value), 0) == value


def test_bytes_to_uint():
    assert bytes_to_uint(struct.pack("<q", -1), 0) == 0xFFFFFFFF
    assert bytes_to_uint(struct.pack("<Q", 2147483648), 0) == 2147483648
    assert bytes_to_uint(b"\x00\x01\x00\x00\x00", 1) == 1


@pytest.mark.parametrize(
    "func, offset", [(bytes_to_long, -1), (bytes_to_long, 4), (bytes_to_uint, -1), (bytes_to_uint, 8)]
)
def test_out_of_bounds(func, offset):
    with pytest.raises(IndexError):
        func(bytes(8), offset)


def test_bytes_to_string():
    data = b"test\x00test"
    assert bytes_to_string(data, 0, len(data)) == "test"
    assert bytes_to_string(data, 0, 3) == "tes"
    assert bytes_to_string(b"testtest", 0, 8) == "testtest"
    assert bytes_to_string(data, 5, 4) == "test"


def test_bytes_to_string_out_of_bounds():
    with pytest.raises(IndexError):
        bytes_to_string(bytes(8), -1, 7)
    with pytest.raises(IndexError):
        bytes_to_string(bytes(8), 8, 8)


def test_is_positive_int():
    assert is_positive_int(0)
    assert is_positive_int(0x7FFFFFFF)
    assert not is_positive_int(0x80000000)
    assert not is_positive_int(-1)


def test_make_byte_log():
    text = make_byte_log("Bytes", b"ab\x00\xff")
    assert "size: 4" in text
    assert "ab.." in text
    assert "61 62 00 ff" in text
