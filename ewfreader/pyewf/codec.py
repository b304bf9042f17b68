"""Little endian decoding helpers shared by the section parsers"""

from struct import Struct

S_UINT = Struct("<L")
S_LONG = Struct("<q")

MAX_INT = 0x7FFFFFFF


def _check_range(data: bytes, offset: int, length: int):
    if offset < 0 or length < 0 or len(data) < offset + length:
        raise IndexError(
            "range [%d, %d) outside of %d bytes" % (offset, offset + length, len(data))
        )


def bytes_to_uint(data: bytes, offset: int) -> int:
    """Reads a 4 bytes little endian unsigned integer

    Raises:
        IndexError: If the 4 bytes are not available
    """
    _check_range(data, offset, S_UINT.size)
    return S_UINT.unpack_from(data, offset)[0]


def bytes_to_long(data: bytes, offset: int) -> int:
    """Reads a 8 bytes little endian signed integer

    Raises:
        IndexError: If the 8 bytes are not available
    """
    _check_range(data, offset, S_LONG.size)
    return S_LONG.unpack_from(data, offset)[0]


def bytes_to_string(data: bytes, offset: int, length: int) -> str:
    """Reads a string of at most `length` bytes, stopping at the first NUL byte

    Raises:
        IndexError: If the range is not available
    """
    _check_range(data, offset, length)
    raw = bytes(data[offset : offset + length])
    end = raw.find(b"\x00")
    if end != -1:
        raw = raw[:end]
    return raw.decode("ascii", errors="replace")


def is_positive_int(value: int) -> bool:
    """True if `value` can be used as a chunk buffer size or offset"""
    return 0 <= value <= MAX_INT


def make_byte_log(text: str, data: bytes) -> str:
    """Renders `data` as printable characters followed by a hex dump"""
    printable = "".join(chr(b) if 31 < b < 127 else "." for b in data)
    hexdump = " ".join("%02x" % b for b in data)
    return "\n%s, size: %d\n%s\n%s\n" % (text, len(data), printable, hexdump)
