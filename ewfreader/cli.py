"""Console script for ewfreader."""

import hashlib
import sys
from os.path import normpath
from pathlib import Path

import fire

from .app import EWFImage
from .config import ConfigError, load_extraction_plan, load_settings, setup_logging
from .pyewf.errors import EWFError


def _open(ewf_file: str, settings_file: str = None, verbose: int = 0):
    settings = load_settings(settings_file)
    setup_logging(settings, verbose)
    return EWFImage(ewf_file), settings


def _hexdump(data: bytes, base: int = 0) -> str:
    lines = []
    for i in range(0, len(data), 16):
        line = data[i : i + 16]
        text = "".join(chr(b) if 31 < b < 127 else "." for b in line)
        lines.append("%08x  %-47s  |%s|" % (base + i, line.hex(" "), text))
    return "\n".join(lines)


def _copy(ewf: EWFImage, out, offset: int, length: int, read_size: int) -> int:
    written = 0
    end = min(offset + length, ewf.image_size)
    while offset + written < end:
        data = ewf.read_image_bytes(offset + written, min(read_size, end - offset - written))
        if not data:
            break
        out.write(data)
        written += len(data)
    return written


def info(ewf_file: str, settings: str = None, verbose: int = 0):
    """Prints the geometry, sections and stored digests of an image

    Args:
        ewf_file: First segment file (*.E01)
        settings: YAML settings file
        verbose: Increase logging verbosity
    """
    ewf, _ = _open(ewf_file, settings, verbose)
    with ewf:
        print("[+] image size: %d bytes" % ewf.image_size)
        print("[+] chunk size: %d bytes, %d chunks" % (ewf.chunk_size, ewf.chunk_count))
        if ewf.volume is not None:
            print(
                "[+] sectors_per_chunk:0x%x, bytes_per_sector:0x%x, sector_count:0x%x"
                % (
                    ewf.volume.sectors_per_chunk,
                    ewf.volume.bytes_per_sector,
                    ewf.volume.sector_count,
                )
            )
        for segment in ewf.sections.segment_files:
            print("[+] segment %s" % segment)
        for section in ewf.sections:
            print(
                "  0x%08x: type:%8s next:%x size:%x chunks:%d"
                % (
                    section.file_offset,
                    section.section_type,
                    section.next_offset,
                    section.section_size,
                    section.chunk_count,
                )
            )
        for name, value in sorted(ewf.stored_hashes().items()):
            print("[+] %s: %s" % (name, value))


def read(ewf_file: str, offset: int = 0, length: int = 512, out: str = None, settings: str = None, verbose: int = 0):
    """Reads a byte range of the media image

    Args:
        ewf_file: First segment file (*.E01)
        offset: Address of the first byte in the media image
        length: Number of bytes to read
        out: Output file (default: hex dump on stdout)
        settings: YAML settings file
        verbose: Increase logging verbosity
    """
    ewf, config = _open(ewf_file, settings, verbose)
    with ewf:
        if out:
            with open(out, "wb") as _out:
                written = _copy(ewf, _out, offset, length, config["read_size"])
            print("[+] %d bytes written to %s" % (written, out))
        else:
            print(_hexdump(ewf.read_image_bytes(offset, length), offset))


def dump(ewf_file: str, out: str, settings: str = None, verbose: int = 0):
    """Writes the whole media image to a raw file

    Args:
        ewf_file: First segment file (*.E01)
        out: Raw output file
        settings: YAML settings file
        verbose: Increase logging verbosity
    """
    ewf, config = _open(ewf_file, settings, verbose)
    with ewf:
        with open(out, "wb") as _out:
            written = _copy(ewf, _out, 0, ewf.image_size, config["read_size"])
    print("[+] %d bytes written to %s" % (written, out))


def extract(ewf_file: str, plan: str, dump_dir: str = None, settings: str = None, verbose: int = 0):
    """Extracts the named ranges listed in a YAML extraction plan

    Args:
        ewf_file: First segment file (*.E01)
        plan: YAML file with a `dirname` and a list of `ranges`
        dump_dir: Directory location to store dumped data (default location is current execution directory)
        settings: YAML settings file
        verbose: Increase logging verbosity
    """
    extraction = load_extraction_plan(plan)
    if dump_dir and type(dump_dir) is str:
        out_dir = normpath(f"{dump_dir}/{extraction.dirname}")
    else:
        out_dir = normpath(f"./{extraction.dirname}")
    Path(out_dir).mkdir(parents=True, exist_ok=True)

    ewf, config = _open(ewf_file, settings, verbose)
    with ewf:
        for image_range in extraction.ranges:
            target = Path(out_dir) / image_range.name
            with open(target, "wb") as _out:
                written = _copy(ewf, _out, image_range.offset, image_range.length, config["read_size"])
            print("[+] %s: %d bytes" % (target, written))


def verify(ewf_file: str, settings: str = None, verbose: int = 0):
    """Recomputes the media digests and compares them to the stored ones

    Args:
        ewf_file: First segment file (*.E01)
        settings: YAML settings file
        verbose: Increase logging verbosity
    """
    ewf, _ = _open(ewf_file, settings, verbose)
    with ewf:
        stored = ewf.stored_hashes()
        md5, sha1 = hashlib.md5(), hashlib.sha1()
        for address in range(0, ewf.image_size, ewf.chunk_size):
            data = ewf.read_image_bytes(address, ewf.chunk_size)
            md5.update(data)
            sha1.update(data)

    computed = {"md5": md5.hexdigest(), "sha1": sha1.hexdigest()}
    mismatch = False
    for name, value in sorted(computed.items()):
        if name not in stored:
            print("[?] %s: %s (not stored in image)" % (name, value))
        elif stored[name] == value:
            print("[+] %s: %s (match)" % (name, value))
        else:
            print("[!] %s: %s != stored %s" % (name, value, stored[name]))
            mismatch = True
    if mismatch:
        sys.exit(1)


def main():
    try:
        fire.Fire(
            {
                "info": info,
                "read": read,
                "dump": dump,
                "extract": extract,
                "verify": verify,
            }
        )
    except (EWFError, ConfigError, OSError, ValueError) as e:
        print("[!] %s" % e)
        sys.exit(-1)


if __name__ == "__main__":
    main()  # pragma: no cover
