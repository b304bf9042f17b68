"""Table section decoding: chunk count, base offset and the chunk offset array

Offsets below are relative to the start of the section prefix. Two layouts
exist for the offset array: EnCase 6+ and ewfacquire append an Adler-32 after
the entries, older writers do not.
"""

import logging
from collections import namedtuple
from struct import Struct
from typing import Optional

from .codec import bytes_to_long, bytes_to_uint, is_positive_int
from .errors import ChunkLookupError, FormatError, IntegerRangeError
from .section import SECTION_PREFIX_SIZE, SectionDescriptor, SectionType
from .segment import CHECKSUM_SIZE, SegmentFileReader

# entry count, padding, base offset, padding, adler32
S_TABLE_HEADER = Struct("<L4sQ4sL")
assert S_TABLE_HEADER.size == 24

CHUNK_COUNT_OFFSET = 76
TABLE_BASE_OFFSET = 84
OFFSET_ARRAY_OFFSET = SECTION_PREFIX_SIZE + S_TABLE_HEADER.size
assert OFFSET_ARRAY_OFFSET == 100

ENTRY_SIZE = 4
COMPRESSED_FLAG = 0x80000000
OFFSET_MASK = 0x7FFFFFFF

TableMetadata = namedtuple("TableMetadata", "table_chunk_count table_base_offset")

log = logging.getLogger(__name__)


def _check_type(descriptor: SectionDescriptor):
    if descriptor.section_type is not SectionType.TABLE:
        raise ValueError("not a table section: %s" % descriptor.section_type)


def read_table_metadata(
    reader: SegmentFileReader, descriptor: SectionDescriptor
) -> TableMetadata:
    """Read the chunk count and base offset of a table section

    Args:
        reader: Segment reader used for the checksummed read
        descriptor: Descriptor of the table section

    Returns:
        The table metadata

    Raises:
        FormatError: If the section is too small to hold the table header
        IntegerRangeError: If the chunk count is out of range
    """
    _check_type(descriptor)
    if descriptor.section_size < OFFSET_ARRAY_OFFSET:
        raise FormatError(
            "table section chunk count size is too small",
            descriptor.segment_file,
            descriptor.file_offset,
        )

    data = reader.read_checked(
        descriptor.segment_file,
        descriptor.data_offset,
        OFFSET_ARRAY_OFFSET - SECTION_PREFIX_SIZE,
    )
    chunk_count = bytes_to_uint(data, CHUNK_COUNT_OFFSET - SECTION_PREFIX_SIZE)
    if not is_positive_int(chunk_count):
        raise IntegerRangeError(
            "Invalid chunk count", descriptor.segment_file, descriptor.file_offset
        )
    base_offset = bytes_to_long(data, TABLE_BASE_OFFSET - SECTION_PREFIX_SIZE)
    return TableMetadata(chunk_count, base_offset)


class ChunkTable(object):
    """Chunk offset array of one table section"""

    def __init__(
        self,
        reader: SegmentFileReader,
        descriptor: SectionDescriptor,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        """Read the offset array of `descriptor`, choosing the layout from the section size

        Args:
            reader: Segment reader
            descriptor: Table section descriptor, with its chunk count set
            logger: Logger for layout notes

        Raises:
            FormatError: If the section size matches neither layout
        """
        _check_type(descriptor)
        logger = logger or log
        self.descriptor = descriptor
        self.chunk_count = descriptor.chunk_count

        array_size = self.chunk_count * ENTRY_SIZE
        expected = OFFSET_ARRAY_OFFSET + array_size
        address = descriptor.file_offset + OFFSET_ARRAY_OFFSET

        if descriptor.section_size < expected:
            raise FormatError(
                "table section chunk table size is too small",
                descriptor.segment_file,
                descriptor.file_offset,
            )

        if descriptor.section_size >= expected + CHECKSUM_SIZE:
            self.entries = reader.read_checked(
                descriptor.segment_file, address, array_size + CHECKSUM_SIZE
            )[:array_size]
            self.checksummed = True
            if descriptor.section_size != expected + CHECKSUM_SIZE:
                logger.info(
                    "Note: File %s chunk table contains extra bytes at section %s",
                    descriptor.segment_file,
                    descriptor,
                )
        elif descriptor.section_size == expected:
            self.entries = reader.read_raw(descriptor.segment_file, address, array_size)
            self.checksummed = False
            logger.info(
                "Note: File %s does not use an offset array Adler32 checksum at section %s",
                descriptor.segment_file,
                descriptor,
            )
        else:
            # too large for no checksum, too small for a checksum
            raise FormatError(
                "invalid table section size for chunk table",
                descriptor.segment_file,
                descriptor.file_offset,
            )

    def __len__(self) -> int:
        return self.chunk_count

    def _entry(self, table_index: int) -> int:
        if table_index < 0 or table_index >= self.chunk_count:
            raise ChunkLookupError(
                "Invalid chunk index: %d" % table_index,
                self.descriptor.segment_file,
                self.descriptor.file_offset,
            )
        return bytes_to_uint(self.entries, table_index * ENTRY_SIZE)

    def chunk_start_offset(self, table_index: int) -> int:
        """Offset of the chunk relative to the table base offset"""
        # most significant bit is compression status
        return self._entry(table_index) & OFFSET_MASK

    def is_compressed(self, table_index: int) -> bool:
        return self._entry(table_index) & COMPRESSED_FLAG != 0
