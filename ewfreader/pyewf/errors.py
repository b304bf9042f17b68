"""Exceptions raised while reading EWF segment files"""

from pathlib import PurePath
from typing import Optional, Union

LONG_FORMAT = "%d (0x%08x)"


class EWFError(IOError):
    """Base class of every error raised by the EWF reader

    Args:
        message: Description of the failure
        filename: Segment file in which the failure happened, if any
        offset: Offset in the segment file, if any
    """

    def __init__(
        self,
        message: str,
        filename: Optional[Union[str, PurePath]] = None,
        offset: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.filename = filename
        self.offset = offset

    def _render(self) -> str:
        text = self.message
        if self.filename is not None:
            text += ": file %s" % self.filename
        if self.offset is not None:
            text += " offset " + LONG_FORMAT % (self.offset, self.offset)
        return text

    def __str__(self) -> str:
        return self._render()


class FormatError(EWFError):
    """The image does not follow the EWF layout"""


class ChecksumError(EWFError):
    """An Adler-32 checksum does not match"""


class IntegerRangeError(EWFError):
    """A size or offset does not fit the chunk addressing range"""


class DecompressionError(EWFError):
    """A zlib stream is malformed or does not terminate"""


class ChunkLookupError(EWFError, LookupError):
    """A chunk or its enclosing section is missing from the section index"""


class InsufficientBytesError(EWFError):
    """A chunk holds fewer bytes than the image claims"""


class SegmentReadError(EWFError):
    """The underlying segment file could not be read"""
