"""Section types and section prefix descriptors"""

from collections import namedtuple
from enum import Enum
from pathlib import Path
from struct import Struct
from typing import Union

from .codec import bytes_to_long, bytes_to_string

# type, next section offset, section size, padding, adler32
S_SECTION = Struct("<16sQQ40sL")
assert S_SECTION.size == 76

SECTION_PREFIX_SIZE = S_SECTION.size
SECTION_TYPE_OFFSET = 0
SECTION_TYPE_LENGTH = 16
NEXT_SECTION_OFFSET = 16
SECTION_SIZE_OFFSET = 24


class SectionType(Enum):
    HEADER = "header"
    VOLUME = "volume"
    TABLE = "table"
    NEXT = "next"
    DONE = "done"
    HEADER2 = "header2"
    DISK = "disk"
    DATA = "data"
    SECTORS = "sectors"
    TABLE2 = "table2"
    LTREE = "ltree"
    DIGEST = "digest"
    HASH = "hash"
    UNKNOWN = None

    @classmethod
    def from_name(cls, name: str) -> "SectionType":
        """Map the type string of a section prefix to its member, UNKNOWN if unrecognized"""
        try:
            return cls(name)
        except ValueError:
            return cls.UNKNOWN

    def __str__(self) -> str:
        return self.value if self.value is not None else "unknown"


class SectionDescriptor(
    namedtuple(
        "SectionDescriptor",
        "section_type segment_file file_offset next_offset section_size chunk_index chunk_count",
    )
):
    """One section prefix, located in its segment file and in the chunk numbering"""

    __slots__ = ()

    @property
    def next_chunk_index(self) -> int:
        return self.chunk_index + self.chunk_count

    @property
    def data_offset(self) -> int:
        return self.file_offset + SECTION_PREFIX_SIZE

    def __str__(self) -> str:
        return (
            "Section Prefix type '%s' of file %s offset 0x%x size 0x%x chunk index %d chunk count %d"
            % (
                self.section_type,
                self.segment_file,
                self.file_offset,
                self.section_size,
                self.chunk_index,
                self.chunk_count,
            )
        )


def decode_section_prefix(data: bytes):
    """Decode a checksum-validated 76 bytes prefix

    Returns:
        (type name, next offset, section size)
    """
    name = bytes_to_string(data, SECTION_TYPE_OFFSET, SECTION_TYPE_LENGTH)
    next_offset = bytes_to_long(data, NEXT_SECTION_OFFSET)
    section_size = bytes_to_long(data, SECTION_SIZE_OFFSET)
    return name, next_offset, section_size


def make_descriptor(
    section_type: SectionType,
    segment_file: Union[str, Path],
    file_offset: int,
    next_offset: int,
    section_size: int,
    chunk_index: int = 0,
    chunk_count: int = 0,
) -> SectionDescriptor:
    return SectionDescriptor(
        section_type,
        Path(segment_file),
        file_offset,
        next_offset,
        section_size,
        chunk_index,
        chunk_count,
    )
