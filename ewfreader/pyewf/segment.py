"""Raw block access to EWF segment files, one open file at a time"""

import logging
from pathlib import Path
from struct import Struct
from typing import BinaryIO, Optional, Union
from zlib import adler32, decompressobj, error as ZlibError

from .codec import bytes_to_uint, make_byte_log
from .errors import (
    LONG_FORMAT,
    ChecksumError,
    DecompressionError,
    FormatError,
    SegmentReadError,
)

EVF_SIGNATURE = b"EVF\t\r\n\xff\x00"

# signature, fields start (1), segment number, fields end (0)
S_FILE_HEADER = Struct("<8sBHH")
assert S_FILE_HEADER.size == 13

FILE_FIRST_SECTION_START_ADDRESS = S_FILE_HEADER.size
DEFAULT_CHUNK_SIZE = 64 * 512
CHECKSUM_SIZE = 4

log = logging.getLogger(__name__)


class SegmentFileReader(object):
    """Reads byte ranges out of segment files.

    Only one segment file is kept open. Asking for another file closes the
    current one first, so callers never hold more than a single descriptor
    whatever the number of segments in the image.
    """

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        """Initialize the reader with no open file

        Args:
            logger: Logger receiving checksum diagnostics
        """
        self.logger = logger or log
        self.current_path = None
        self.current_file = None
        self._verified = set()

    def __enter__(self) -> "SegmentFileReader":
        return self

    def __exit__(self, exception_type, exception_value, exception_traceback):
        self.close()

    def open(self, path: Union[str, Path]) -> BinaryIO:
        """Return the handle of `path`, opening it if it is not the current file

        Args:
            path: Segment file to open

        Returns:
            The open binary file object

        Raises:
            FormatError: If the file does not start with the EWF signature
            SegmentReadError: If the file cannot be opened
        """
        path = Path(path)
        if self.current_file is not None and path == self.current_path:
            return self.current_file

        self.close()

        try:
            self.current_file = open(path, "rb")
        except OSError as e:
            raise SegmentReadError("Unable to open segment file (%s)" % e.strerror, path) from e
        self.current_path = path

        if path not in self._verified:
            try:
                signature = self.current_file.read(len(EVF_SIGNATURE))
            except OSError as e:
                self.close()
                raise SegmentReadError("Unable to read file signature", path, 0) from e
            if signature != EVF_SIGNATURE:
                self.close()
                raise FormatError("Invalid E01 file signature", path, 0)
            self._verified.add(path)

        return self.current_file

    def close(self):
        """Release the open segment file, if any"""
        if self.current_file is not None:
            self.current_file.close()
        self.current_file = None
        self.current_path = None

    def read_raw(self, path: Union[str, Path], offset: int, nb_bytes: int) -> bytes:
        """Read exactly `nb_bytes` at `offset`

        Raises:
            SegmentReadError: On I/O failure or short read
        """
        file = self.open(path)
        try:
            file.seek(offset)
            data = file.read(nb_bytes)
        except (OSError, ValueError, OverflowError) as e:
            raise SegmentReadError("Unable to read from file", path, offset) from e

        if len(data) != nb_bytes:
            raise SegmentReadError(
                "Short read: %d of %d bytes" % (len(data), nb_bytes), path, offset
            )
        return data

    def read_checked(self, path: Union[str, Path], offset: int, nb_bytes: int) -> bytes:
        """Read `nb_bytes` whose last 4 bytes are the Adler-32 of the others

        Returns:
            The full buffer, checksum included

        Raises:
            ChecksumError: If the stored checksum does not match
        """
        if nb_bytes <= CHECKSUM_SIZE:
            raise FormatError(
                "Invalid Adler32 read too short: %d bytes" % nb_bytes, path, offset
            )

        data = self.read_raw(path, offset, nb_bytes)
        computed = adler32(data[:-CHECKSUM_SIZE])
        expected = bytes_to_uint(data, nb_bytes - CHECKSUM_SIZE)
        if computed != expected:
            self.logger.error(
                "Invalid Adler32 checksum: Calculated value %s is not equal to expected value %s%s",
                LONG_FORMAT % (computed, computed),
                LONG_FORMAT % (expected, expected),
                make_byte_log("Bytes failing Adler32 checksum", data),
            )
            raise ChecksumError(
                "Invalid Adler32 checksum on %d bytes" % nb_bytes, path, offset
            )
        return data

    def inflate(
        self, path: Union[str, Path], offset: int, nb_bytes: int, capacity: int
    ) -> bytes:
        """Read `nb_bytes` of zlib data and decompress them into at most `capacity` bytes

        The stream may end before filling `capacity`, which is how the true
        length of the last chunk of an image is found.

        Raises:
            DecompressionError: If the stream is malformed, longer than
                `capacity` or not terminated
        """
        compressed = self.read_raw(path, offset, nb_bytes)
        inflater = decompressobj()
        try:
            # one extra byte tells "exactly capacity" apart from "too long"
            data = inflater.decompress(compressed, capacity + 1)
        except ZlibError as e:
            raise DecompressionError(str(e), path, offset) from e

        if len(data) > capacity:
            raise DecompressionError(
                "Inflated data exceeds %d bytes" % capacity, path, offset
            )
        if not inflater.eof:
            raise DecompressionError(
                "Inflater not finished: %d in, %d out, %d remaining"
                % (
                    nb_bytes - len(inflater.unconsumed_tail),
                    len(data),
                    len(inflater.unconsumed_tail),
                ),
                path,
                offset,
            )
        return data
