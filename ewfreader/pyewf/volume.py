"""Volume section parsing and chunk size resolution"""

import logging
from collections import namedtuple
from struct import Struct
from typing import Optional

from .codec import MAX_INT, is_positive_int
from .errors import FormatError, IntegerRangeError
from .section import SECTION_PREFIX_SIZE, SectionDescriptor, SectionType
from .segment import DEFAULT_CHUNK_SIZE, SegmentFileReader

S_VOLUME = Struct("<LLLLL")

# checksummed volume data block: prefix + 1052 bytes
VOLUME_SECTION_SIZE = 1128

VOLUME_TYPES = (SectionType.VOLUME, SectionType.DISK)

log = logging.getLogger(__name__)


class VolumeMetadata(
    namedtuple(
        "VolumeMetadata", "chunk_count sectors_per_chunk bytes_per_sector sector_count"
    )
):
    __slots__ = ()

    @property
    def chunk_size(self) -> int:
        return self.sectors_per_chunk * self.bytes_per_sector


def read_volume(
    reader: SegmentFileReader, descriptor: SectionDescriptor
) -> VolumeMetadata:
    """Read the media geometry stored in a volume (or disk) section

    Args:
        reader: Segment reader
        descriptor: Descriptor of the volume section

    Returns:
        The volume metadata

    Raises:
        FormatError: If the section is smaller than the volume structure
        ChecksumError: If the volume data checksum does not match
        IntegerRangeError: If a value does not fit a positive int
    """
    if descriptor.section_type not in VOLUME_TYPES:
        raise ValueError("not a volume section: %s" % descriptor.section_type)

    if descriptor.section_size < VOLUME_SECTION_SIZE:
        raise FormatError(
            "Invalid small Volume Section size",
            descriptor.segment_file,
            descriptor.file_offset,
        )

    data = reader.read_checked(
        descriptor.segment_file,
        descriptor.data_offset,
        VOLUME_SECTION_SIZE - SECTION_PREFIX_SIZE,
    )
    _reserved, *values = S_VOLUME.unpack_from(data, 0)
    volume = VolumeMetadata(*values)

    for field, value in zip(VolumeMetadata._fields, volume):
        if not is_positive_int(value):
            raise IntegerRangeError(
                "Invalid %s" % field.replace("_", " "),
                descriptor.segment_file,
                descriptor.file_offset,
            )
    if not 0 < volume.chunk_size <= MAX_INT:
        raise IntegerRangeError(
            "Invalid chunk size %d" % volume.chunk_size,
            descriptor.segment_file,
            descriptor.file_offset,
        )
    return volume


def resolve_chunk_size(
    reader: SegmentFileReader, sections, logger: Optional[logging.Logger] = None
):
    """Find the chunk size from the first volume section of the index

    Args:
        reader: Segment reader
        sections: Iterable of section descriptors
        logger: Logger for the chosen size

    Returns:
        (chunk size, VolumeMetadata or None when the image has no volume section)
    """
    logger = logger or log
    sections = list(sections)

    for section_type in VOLUME_TYPES:
        for descriptor in sections:
            if descriptor.section_type is section_type:
                volume = read_volume(reader, descriptor)
                logger.info("Chunk size: %d", volume.chunk_size)
                return volume.chunk_size, volume

    logger.info("This media has no Volume Section, using chunk size %d", DEFAULT_CHUNK_SIZE)
    return DEFAULT_CHUNK_SIZE, None
