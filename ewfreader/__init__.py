"""Top-level package for ewfreader."""

__version__ = "0.1.0"

from .app import EWFImage
from .pyewf.errors import (
    ChecksumError,
    ChunkLookupError,
    DecompressionError,
    EWFError,
    FormatError,
    InsufficientBytesError,
    IntegerRangeError,
    SegmentReadError,
)
