"""Chunk resolution: from a logical chunk number to its decoded bytes"""

import logging
from collections import namedtuple
from functools import lru_cache
from typing import Optional

from .codec import is_positive_int
from .errors import IntegerRangeError
from .index import SectionIndex
from .section import SectionDescriptor
from .segment import CHECKSUM_SIZE, SegmentFileReader
from .table import ChunkTable, read_table_metadata

log = logging.getLogger(__name__)


class ChunkBounds(namedtuple("ChunkBounds", "section start end compressed")):
    __slots__ = ()

    @property
    def size(self) -> int:
        return self.end - self.start


class ChunkResolver(object):
    """Locates chunks in the segment files and decodes them"""

    def __init__(
        self,
        reader: SegmentFileReader,
        index: SectionIndex,
        chunk_size: int,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.reader = reader
        self.index = index
        self.chunk_size = chunk_size
        self.logger = logger or log

        self._chunk_table = lru_cache(maxsize=64)(self._read_chunk_table)

    def _read_chunk_table(self, section: SectionDescriptor):
        metadata = read_table_metadata(self.reader, section)
        if metadata.table_base_offset != 0:
            self.logger.debug(
                "non-zero table base offset 0x%x at section %s",
                metadata.table_base_offset,
                section,
            )
        return metadata, ChunkTable(self.reader, section, self.logger)

    def locate_chunk(self, chunk_index: int) -> SectionDescriptor:
        return self.index.locate_chunk(chunk_index)

    def resolve_bounds(self, chunk_index: int) -> ChunkBounds:
        """Compute where chunk `chunk_index` starts and ends in its segment file

        The length of a chunk is not stored. It ends where the next entry of
        its table starts or, for the last entry, where the section holding it
        ends.

        Raises:
            ChunkLookupError: If the chunk or its enclosing section is missing
            IntegerRangeError: If the computed chunk size is invalid
        """
        section = self.locate_chunk(chunk_index)
        metadata, table = self._chunk_table(section)
        table_index = chunk_index - section.chunk_index

        start = table.chunk_start_offset(table_index) + metadata.table_base_offset
        compressed = table.is_compressed(table_index)

        if chunk_index + 1 < section.next_chunk_index:
            end = table.chunk_start_offset(table_index + 1) + metadata.table_base_offset
        else:
            end = self.index.enclosing_section(section.segment_file, start).next_offset

        if not is_positive_int(end - start):
            raise IntegerRangeError(
                "Invalid media chunk size at section %s" % (section,),
                section.segment_file,
                start,
            )
        return ChunkBounds(section, start, end, compressed)

    def read_chunk(self, chunk_index: int) -> bytes:
        """Read and decode chunk `chunk_index`

        Compressed chunks are inflated, which also verifies their Adler-32.
        Raw chunks are checksum-validated and returned without their checksum.
        """
        bounds = self.resolve_bounds(chunk_index)
        segment_file = bounds.section.segment_file
        self.logger.debug(
            "chunk %d: %s 0x%x-0x%x (%s)",
            chunk_index,
            segment_file,
            bounds.start,
            bounds.end,
            "compressed" if bounds.compressed else "raw",
        )

        if bounds.compressed:
            return self.reader.inflate(
                segment_file, bounds.start, bounds.size, self.chunk_size
            )

        data = self.reader.read_checked(segment_file, bounds.start, bounds.size)
        return data[:-CHECKSUM_SIZE]
