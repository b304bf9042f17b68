"""Pure Python reader for EWF (.E01) segment files"""

from .chunk import ChunkBounds, ChunkResolver
from .errors import (
    ChecksumError,
    ChunkLookupError,
    DecompressionError,
    EWFError,
    FormatError,
    InsufficientBytesError,
    IntegerRangeError,
    SegmentReadError,
)
from .index import SectionIndex, build_section_index
from .naming import is_valid_first_name, next_name
from .section import SectionDescriptor, SectionType
from .segment import DEFAULT_CHUNK_SIZE, SegmentFileReader
from .volume import VolumeMetadata, resolve_chunk_size
