import logging

import pytest

from ewfreader import EWFImage
from ewfreader.pyewf.errors import FormatError, IntegerRangeError
from ewfreader.pyewf.index import build_section_index
from ewfreader.pyewf.section import SectionType
from ewfreader.pyewf.segment import SegmentFileReader
from ewfreader.pyewf.volume import read_volume, resolve_chunk_size

from ._utils import SegmentBuilder, volume_payload, write_image


@pytest.fixture
def reader():
    with SegmentFileReader() as _reader:
        yield _reader


def test_disk_section_fallback(tmp_path, caplog):
    chunks = [(b"d" * 16384, True), (b"end", False)]
    path, _ = write_image(tmp_path, chunks=chunks, volume_type="disk", sectors_per_chunk=32)
    with caplog.at_level(logging.INFO):
        with EWFImage(path) as ewf:
            assert ewf.sections.first(SectionType.VOLUME) is None
            assert ewf.sections.first(SectionType.DISK) is not None
            assert ewf.chunk_size == 16384
            assert ewf.volume.sectors_per_chunk == 32
            assert ewf.image_size == 16384 + 3
            assert ewf.read_image_bytes(16380, 10) == b"dddd" + b"end"
    assert "Chunk size: 16384" in caplog.text
    assert "no Volume Section" not in caplog.text


def test_volume_preferred_over_disk(tmp_path, reader):
    segment = SegmentBuilder()
    segment.add_section("disk", volume_payload(1, sectors_per_chunk=8))
    segment.add_section("volume", volume_payload(1, sectors_per_chunk=16))
    segment.add_terminal("done")
    path = segment.write(tmp_path / "both.E01")

    index = build_section_index(reader, path)
    chunk_size, volume = resolve_chunk_size(reader, index)
    assert chunk_size == 16 * 512
    assert volume.sectors_per_chunk == 16


def test_small_volume_section(tmp_path):
    path, _ = write_image(tmp_path, volume_size=1127)
    with pytest.raises(FormatError, match="Invalid small Volume Section size"):
        EWFImage(path)


def test_zero_sectors_per_chunk(tmp_path):
    path, _ = write_image(tmp_path, sectors_per_chunk=0)
    with pytest.raises(IntegerRangeError, match="Invalid chunk size 0"):
        EWFImage(path)


@pytest.mark.parametrize(
    "sectors_per_chunk, bytes_per_sector, message",
    [
        (0x80000000, 512, "Invalid sectors per chunk"),
        (64, 0xFFFFFFFF, "Invalid bytes per sector"),
        (0x10000, 0x10000, "Invalid chunk size"),
    ],
)
def test_volume_values_out_of_range(tmp_path, reader, sectors_per_chunk, bytes_per_sector, message):
    path, _ = write_image(
        tmp_path, sectors_per_chunk=sectors_per_chunk, bytes_per_sector=bytes_per_sector
    )
    index = build_section_index(reader, path)
    with pytest.raises(IntegerRangeError, match=message):
        read_volume(reader, index.first(SectionType.VOLUME))


def test_read_volume_rejects_other_sections(tmp_path, reader):
    path, _ = write_image(tmp_path)
    index = build_section_index(reader, path)
    with pytest.raises(ValueError):
        read_volume(reader, index.first(SectionType.TABLE))
