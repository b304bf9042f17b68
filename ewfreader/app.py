"""Main module."""

import io
import logging
import threading
from pathlib import Path
from typing import Optional, Union

from .pyewf.chunk import ChunkResolver
from .pyewf.codec import MAX_INT
from .pyewf.errors import FormatError, InsufficientBytesError, IntegerRangeError
from .pyewf.index import build_section_index
from .pyewf.metadata import HEADER_TYPES, read_header_text, read_stored_hashes
from .pyewf.naming import is_valid_first_name
from .pyewf.section import SectionType
from .pyewf.segment import SegmentFileReader
from .pyewf.volume import resolve_chunk_size

DEFAULT_LOGGER_NAME = "ewfreader"


class EWFImage(object):
    """Random access reader of the media image stored in a chain of EWF segment files"""

    def __init__(
        self, filename: Union[str, Path], logger: Optional[logging.Logger] = None
    ) -> None:
        """Open the chain starting at `filename` and index its sections

        Args:
            filename: The first segment file (*.E01)
            logger: Logger for this image (default: the "ewfreader" logger)

        Raises:
            FormatError: If the name, a signature or the section chain is invalid
            ChecksumError: If a section checksum does not match
        """
        self.filename = Path(filename)
        self.logger = logger or logging.getLogger(DEFAULT_LOGGER_NAME)
        self.reader = SegmentFileReader(self.logger)
        self._lock = threading.RLock()
        self._position = 0
        self.image_size = 0

        if not is_valid_first_name(self.filename):
            raise FormatError("Invalid first EWF filename", self.filename)

        try:
            self.reader.open(self.filename)
            self.sections = build_section_index(self.reader, self.filename, self.logger)
            self.chunk_size, self.volume = resolve_chunk_size(
                self.reader, self.sections, self.logger
            )
            self.resolver = ChunkResolver(
                self.reader, self.sections, self.chunk_size, self.logger
            )
            self.image_size = self._load_image_size()
        except BaseException:
            self.reader.close()
            raise

    def __enter__(self) -> "EWFImage":
        """Called when we enter a `with` block"""
        return self

    def __exit__(self, exception_type, exception_value, exception_traceback):
        """Close the open segment file. Called when we exit a `with` block."""
        self.close()

    def _load_image_size(self) -> int:
        """The image ends with the decoded length of its last chunk"""
        last_chunk_index = self.sections.last_chunk_index
        if last_chunk_index == -1:
            raise FormatError("No media chunks.", self.filename)

        data = self.resolver.read_chunk(last_chunk_index)
        image_size = last_chunk_index * self.chunk_size + len(data)
        self.logger.debug(
            "lastChunkIndex: %d, chunkSize: %d, last chunk length: %d, final size: %d",
            last_chunk_index,
            self.chunk_size,
            len(data),
            image_size,
        )
        return image_size

    @property
    def chunk_count(self) -> int:
        return self.sections.chunk_count

    def get_image_size(self) -> int:
        """Returns the size in bytes of the media image"""
        return self.image_size

    def _read_aligned_bytes(self, address: int, nb_bytes: int) -> bytes:
        """Read bytes that do not cross a chunk boundary

        Args:
            address: Where we want to read in the image
            nb_bytes: Number of bytes, not past the end of the chunk

        Returns:
            The bytes that have been read

        Raises:
            InsufficientBytesError: If the chunk is shorter than requested
        """
        chunk_index, offset = divmod(address, self.chunk_size)
        if not 0 <= chunk_index <= MAX_INT:
            raise IntegerRangeError("Invalid chunk index: %d" % chunk_index)

        chunk = self.resolver.read_chunk(chunk_index)
        if offset + nb_bytes > len(chunk):
            raise InsufficientBytesError(
                "Insufficient bytes read: offset: %d, number of bytes: %d, length: %d"
                % (offset, nb_bytes, len(chunk))
            )
        return chunk[offset : offset + nb_bytes]

    def read_image_bytes(self, address: int, nb_bytes: int) -> bytes:
        """Reads the image bytes at the given address

        Reads past the end of the image are truncated.

        Args:
            address: The address within the image to read
            nb_bytes: The number of bytes to read

        Returns:
            The bytes that have been read, empty at or after the end of the image

        Raises:
            ValueError: If address or nb_bytes is negative
        """
        if address < 0 or nb_bytes < 0:
            raise ValueError("Invalid read: address %d, %d bytes" % (address, nb_bytes))

        if address >= self.image_size:
            return b""
        nb_bytes = min(nb_bytes, self.image_size - address)

        buf = []
        with self._lock:
            while nb_bytes > 0:
                in_chunk = address % self.chunk_size
                count = min(nb_bytes, self.chunk_size - in_chunk)
                buf.append(self._read_aligned_bytes(address, count))
                address += count
                nb_bytes -= count
        return b"".join(buf)

    # file-like interface, used by consumers that parse the media as a stream

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> int:
        with self._lock:
            if whence == io.SEEK_SET:
                position = offset
            elif whence == io.SEEK_CUR:
                position = self._position + offset
            elif whence == io.SEEK_END:
                position = self.image_size + offset
            else:
                raise ValueError("invalid whence (%r)" % whence)

            if position < 0:
                raise ValueError("Offset out of bounds")
            self._position = position
            return self._position

    def tell(self) -> int:
        return self._position

    def get_offset(self) -> int:
        return self.tell()

    def read(self, size: int = -1) -> bytes:
        with self._lock:
            if size is None or size < 0:
                size = max(self.image_size - self._position, 0)
            data = self.read_image_bytes(self._position, size)
            self._position += len(data)
            return data

    def read_buffer_at_offset(self, nb_bytes: int, offset: int) -> bytes:
        # seek and read as one step for threads sharing the cursor
        with self._lock:
            self.seek(offset)
            return self.read(nb_bytes)

    def header_text(self) -> Optional[str]:
        """Returns the case header text of the first header section, if any"""
        for section_type in HEADER_TYPES:
            descriptor = self.sections.first(section_type)
            if descriptor is not None:
                with self._lock:
                    return read_header_text(self.reader, descriptor)
        self.logger.info("This media has no Header Section.")
        return None

    def stored_hashes(self) -> dict:
        """Returns the digests stored in the hash and digest sections"""
        hashes = {}
        with self._lock:
            for section_type in (SectionType.HASH, SectionType.DIGEST):
                descriptor = self.sections.first(section_type)
                if descriptor is not None:
                    hashes.update(read_stored_hashes(self.reader, descriptor))
        return hashes

    def compute_image_hash(self, md):
        """Feed the whole media image to the hashlib object `md`

        Returns:
            The digest of `md`
        """
        for address in range(0, self.image_size, self.chunk_size):
            md.update(self.read_image_bytes(address, self.chunk_size))
        return md.digest()

    def close(self):
        """Release the open segment file. Can be called more than once."""
        with self._lock:
            self.reader.close()
