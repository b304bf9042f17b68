"""Readers for the case header text and the stored media digests"""

from binascii import hexlify
from collections import namedtuple
from struct import Struct

from .errors import FormatError
from .section import SECTION_PREFIX_SIZE, SectionDescriptor, SectionType
from .segment import DEFAULT_CHUNK_SIZE, SegmentFileReader

S_DIGEST = Struct("<16s20s40sL")
assert S_DIGEST.size == 80
NT_DIGEST = namedtuple("digest", "md5 sha1 padding checksum")

S_HASH = Struct("<16s16sL")
assert S_HASH.size == 36
NT_HASH = namedtuple("hash", "md5 unknown checksum")

HEADER_TYPES = (SectionType.HEADER, SectionType.HEADER2)


def read_header_text(reader: SegmentFileReader, descriptor: SectionDescriptor) -> str:
    """Inflate the body of a header or header2 section

    FTK imager : '1\\nmain\\nc\\tn\\ta\\te\\tt\\tav\\tov\\tm\\tu\\tp\\tr\\n ...'
    header2 sections hold the same fields encoded as UTF-16.
    """
    if descriptor.section_type not in HEADER_TYPES:
        raise ValueError("not a header section: %s" % descriptor.section_type)

    size = descriptor.section_size - SECTION_PREFIX_SIZE
    if size <= 0:
        raise FormatError(
            "Invalid Header Section size", descriptor.segment_file, descriptor.file_offset
        )

    data = reader.inflate(
        descriptor.segment_file, descriptor.data_offset, size, DEFAULT_CHUNK_SIZE
    )
    if descriptor.section_type is SectionType.HEADER2:
        return data.decode("utf-16", errors="replace")
    return data.decode("ascii", errors="replace")


def read_stored_hashes(reader: SegmentFileReader, descriptor: SectionDescriptor) -> dict:
    """Read the MD5 (hash section) or MD5 and SHA1 (digest section) of the media

    Returns:
        A dict mapping "md5" / "sha1" to lowercase hex strings
    """
    if descriptor.section_type is SectionType.DIGEST:
        data = reader.read_checked(
            descriptor.segment_file, descriptor.data_offset, S_DIGEST.size
        )
        digest_nt = NT_DIGEST(*S_DIGEST.unpack_from(data, 0))
        return {
            "md5": hexlify(digest_nt.md5).decode(),
            "sha1": hexlify(digest_nt.sha1).decode(),
        }

    if descriptor.section_type is SectionType.HASH:
        data = reader.read_checked(
            descriptor.segment_file, descriptor.data_offset, S_HASH.size
        )
        hash_nt = NT_HASH(*S_HASH.unpack_from(data, 0))
        return {"md5": hexlify(hash_nt.md5).decode()}

    raise ValueError("not a hash section: %s" % descriptor.section_type)
