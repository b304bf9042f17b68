import hashlib
import io
import logging
import threading

import pytest

from ewfreader import EWFImage
from ewfreader.pyewf.errors import (
    ChecksumError,
    FormatError,
    InsufficientBytesError,
    SegmentReadError,
)
from ewfreader.pyewf.segment import DEFAULT_CHUNK_SIZE

from ._utils import CHUNK_SIZE, FULL_CHUNK, TAIL_CHUNK, flip_byte, write_image

MEDIA = FULL_CHUNK + TAIL_CHUNK


@pytest.fixture
def image(tmp_path):
    path, _ = write_image(tmp_path)
    with EWFImage(path) as ewf:
        yield ewf


def test_open(image):
    assert image.chunk_size == CHUNK_SIZE
    assert image.chunk_count == 2
    assert image.volume.bytes_per_sector == 512
    assert image.volume.sectors_per_chunk == 64
    assert image.image_size == len(FULL_CHUNK) + len(TAIL_CHUNK)
    assert image.get_image_size() == image.image_size


def test_read_spanning_chunks(image):
    assert image.read_image_bytes(0, image.image_size) == MEDIA
    start = CHUNK_SIZE - 100
    assert image.read_image_bytes(start, 300) == MEDIA[start : start + 300]


@pytest.mark.parametrize("address, length", [(0, 0), (0, 1), (5, 100), (CHUNK_SIZE, 10), (CHUNK_SIZE - 1, 2)])
def test_read_ranges(image, address, length):
    assert image.read_image_bytes(address, length) == MEDIA[address : address + length]


@pytest.mark.parametrize("extra", [0, 1, 1000])
def test_read_past_end_is_empty(image, extra):
    for length in (0, 1, 4096):
        assert image.read_image_bytes(image.image_size + extra, length) == b""


def test_read_truncated_at_end(image):
    address = image.image_size - 10
    data = image.read_image_bytes(address, 4096)
    assert len(data) == 10
    assert data == MEDIA[-10:]


def test_read_is_idempotent(image):
    first = image.read_image_bytes(CHUNK_SIZE - 7, 500)
    image.read_image_bytes(0, 10)
    assert image.read_image_bytes(CHUNK_SIZE - 7, 500) == first


def test_negative_read(image):
    with pytest.raises(ValueError):
        image.read_image_bytes(-1, 10)


def test_file_like_interface(image):
    assert image.read(4) == MEDIA[:4]
    assert image.tell() == 4
    image.seek(-10, io.SEEK_END)
    assert image.read() == MEDIA[-10:]
    assert image.read(10) == b""
    image.seek(CHUNK_SIZE)
    image.seek(2, io.SEEK_CUR)
    assert image.get_offset() == CHUNK_SIZE + 2
    assert image.read_buffer_at_offset(8, 16) == MEDIA[16:24]
    with pytest.raises(ValueError):
        image.seek(-1)


def test_compute_image_hash(image):
    assert image.compute_image_hash(hashlib.md5()) == hashlib.md5(MEDIA).digest()


def test_close_is_idempotent(tmp_path):
    path, _ = write_image(tmp_path)
    ewf = EWFImage(path)
    ewf.close()
    ewf.close()
    assert ewf.reader.current_file is None
    # reads reopen the needed segment
    assert ewf.read_image_bytes(0, 4) == MEDIA[:4]
    ewf.close()


def test_invalid_first_name(tmp_path):
    path, _ = write_image(tmp_path)
    with pytest.raises(FormatError, match="Invalid first EWF filename"):
        EWFImage(tmp_path / "image.E02")


def test_missing_first_segment(tmp_path):
    with pytest.raises(SegmentReadError, match="Unable to open segment file"):
        EWFImage(tmp_path / "missing.E01")


def test_invalid_signature(tmp_path):
    path, _ = write_image(tmp_path)
    flip_byte(path, 0)
    with pytest.raises(FormatError, match="signature"):
        EWFImage(path)


def test_corrupt_prefix_fails_open(tmp_path):
    path, first = write_image(tmp_path)
    flip_byte(path, first.sections["sectors"] + 3)
    with pytest.raises(ChecksumError):
        EWFImage(path)


def test_no_volume_uses_default_chunk_size(tmp_path, caplog):
    path, _ = write_image(tmp_path, volume=False)
    with caplog.at_level(logging.INFO):
        with EWFImage(path) as ewf:
            assert ewf.volume is None
            assert ewf.chunk_size == DEFAULT_CHUNK_SIZE
            assert ewf.read_image_bytes(0, ewf.image_size) == MEDIA
    assert "no Volume Section" in caplog.text


def test_no_media_chunks(tmp_path):
    path, _ = write_image(tmp_path, chunks=())
    with pytest.raises(FormatError, match="No media chunks"):
        EWFImage(path)


def test_short_chunk_in_the_middle(tmp_path):
    # first chunk holds fewer bytes than the chunk size
    path, _ = write_image(tmp_path, chunks=((b"x" * 100, False), (b"y" * 100, False)))
    with EWFImage(path) as ewf:
        assert ewf.image_size == CHUNK_SIZE + 100
        assert ewf.read_image_bytes(0, 100) == b"x" * 100
        with pytest.raises(InsufficientBytesError):
            ewf.read_image_bytes(50, 200)


def test_smaller_chunk_size(tmp_path):
    chunks = [(bytes([i]) * 1024, i % 2 == 0) for i in range(5)] + [(b"end", True)]
    path, _ = write_image(tmp_path, chunks=chunks, sectors_per_chunk=2)
    media = b"".join(data for data, _ in chunks)
    with EWFImage(path) as ewf:
        assert ewf.chunk_size == 1024
        assert ewf.image_size == len(media)
        assert ewf.read_image_bytes(1000, 3000) == media[1000:4000]


def test_independent_loggers(tmp_path, caplog):
    path, _ = write_image(tmp_path)
    logger = logging.getLogger("case-42")
    with caplog.at_level(logging.INFO):
        with EWFImage(path, logger=logger):
            pass
    assert any(r.name == "case-42" and "Total section count" in r.getMessage() for r in caplog.records)


def test_shared_cursor_across_threads(image):
    offsets = [i * 997 for i in range(40)]
    results = {}
    errors = []

    def worker(offsets):
        try:
            for offset in offsets:
                results[offset] = image.read_buffer_at_offset(64, offset)
        except Exception as e:
            errors.append(e)

    threads = [threading.Thread(target=worker, args=(offsets[i::4],)) for i in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert not errors
    for offset in offsets:
        assert results[offset] == MEDIA[offset : offset + 64]
