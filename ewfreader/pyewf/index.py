"""Section index: every section prefix of every segment file, in chain order"""

import logging
from bisect import bisect_right
from pathlib import Path
from typing import Iterator, Optional, Union

from .errors import ChunkLookupError, FormatError, SegmentReadError
from .naming import next_name
from .section import (
    SECTION_PREFIX_SIZE,
    SectionDescriptor,
    SectionType,
    decode_section_prefix,
    make_descriptor,
)
from .segment import FILE_FIRST_SECTION_START_ADDRESS, SegmentFileReader
from .table import read_table_metadata

log = logging.getLogger(__name__)


def read_section_descriptor(
    reader: SegmentFileReader,
    path: Union[str, Path],
    offset: int,
    chunk_index: int,
) -> SectionDescriptor:
    """Read and validate the section prefix at `offset`

    Args:
        reader: Segment reader
        path: Segment file holding the prefix
        offset: Absolute offset of the prefix in `path`
        chunk_index: Number of chunks introduced by the previous sections

    Returns:
        The section descriptor, with the chunk count of table sections

    Raises:
        ChecksumError: If the prefix checksum does not match
        FormatError: If the section type is not recognized
    """
    data = reader.read_checked(path, offset, SECTION_PREFIX_SIZE)
    name, next_offset, section_size = decode_section_prefix(data)

    section_type = SectionType.from_name(name)
    if section_type is SectionType.UNKNOWN:
        raise FormatError("Invalid Section type: '%s'" % name, path, offset)

    descriptor = make_descriptor(
        section_type, path, offset, next_offset, section_size, chunk_index, 0
    )
    if section_type is SectionType.TABLE:
        metadata = read_table_metadata(reader, descriptor)
        descriptor = descriptor._replace(chunk_count=metadata.table_chunk_count)
    return descriptor


class SectionIndex(object):
    """Immutable, ordered list of the sections of an image"""

    def __init__(self, sections) -> None:
        self.sections = tuple(sections)
        if not self.sections or self.sections[-1].section_type is not SectionType.DONE:
            raise FormatError("Missing done section")

        # chunk lookups bisect over the sections owning chunks
        self._tables = [s for s in self.sections if s.chunk_count > 0]
        self._table_starts = [s.chunk_index for s in self._tables]

    def __len__(self) -> int:
        return len(self.sections)

    def __iter__(self) -> Iterator[SectionDescriptor]:
        return iter(self.sections)

    def __getitem__(self, item):
        return self.sections[item]

    @property
    def segment_files(self) -> list:
        files = []
        for section in self.sections:
            if section.segment_file not in files:
                files.append(section.segment_file)
        return files

    @property
    def chunk_count(self) -> int:
        return self.sections[-1].next_chunk_index

    @property
    def last_chunk_index(self) -> int:
        return self.chunk_count - 1

    def first(self, section_type: SectionType) -> Optional[SectionDescriptor]:
        for section in self.sections:
            if section.section_type is section_type:
                return section
        return None

    def locate_chunk(self, chunk_index: int) -> SectionDescriptor:
        """Find the table section whose chunk range holds `chunk_index`

        Raises:
            ChunkLookupError: If no section holds the chunk
        """
        position = bisect_right(self._table_starts, chunk_index) - 1
        if position >= 0:
            section = self._tables[position]
            if section.chunk_index <= chunk_index < section.next_chunk_index:
                return section
        raise ChunkLookupError("Section for chunk index %d cannot be found" % chunk_index)

    def enclosing_section(self, segment_file: Path, address: int) -> SectionDescriptor:
        """Find the section of `segment_file` that strictly surrounds `address`

        Raises:
            ChunkLookupError: If no section surrounds the address
        """
        for section in self.sections:
            if (
                section.segment_file == segment_file
                and section.file_offset < address < section.next_offset
            ):
                return section
        raise ChunkLookupError(
            "Section surrounding address cannot be found", segment_file, address
        )


def build_section_index(
    reader: SegmentFileReader,
    first_file: Union[str, Path],
    logger: Optional[logging.Logger] = None,
) -> SectionIndex:
    """Walk the section chain of every segment file, starting at `first_file`

    Args:
        reader: Segment reader
        first_file: Path of the `.E01` segment
        logger: Logger for the section count

    Returns:
        The section index, ending with the done section

    Raises:
        FormatError: If a type is unknown, the chain loops or no done section
            is found
        ChecksumError: If a prefix checksum does not match
    """
    logger = logger or log
    path = Path(first_file)
    offset = FILE_FIRST_SECTION_START_ADDRESS
    chunk_index = 0
    sections = []

    while True:
        try:
            section = read_section_descriptor(reader, path, offset, chunk_index)
        except SegmentReadError as e:
            raise FormatError(
                "Missing done section, chain ends (%s)" % e.message, path, offset
            ) from e

        sections.append(section)
        logger.debug("%s", section)
        chunk_index = section.next_chunk_index

        if section.section_type is SectionType.DONE:
            break

        if section.section_type is SectionType.NEXT:
            path = next_name(path)
            offset = FILE_FIRST_SECTION_START_ADDRESS
            continue

        if section.next_offset <= offset:
            raise FormatError(
                "Section chain does not advance (next offset 0x%x)" % section.next_offset,
                path,
                offset,
            )
        offset = section.next_offset

    logger.info("Total section count: %d", len(sections))
    return SectionIndex(sections)
