"""Segment file naming: .E01 -> .E02 ... .E99 -> .EAA ... .EZZ -> .FAA"""

from pathlib import Path
from typing import Union

from .errors import FormatError

FIRST_SUFFIX = "E01"
SERIAL_E99 = "E99"
SERIAL_EAA = "EAA"


def _split_suffix(path: Union[str, Path]):
    name = Path(path).name
    if len(name) < 4 or name[-4] != ".":
        return None, None
    suffix = name[-3:]
    if not (suffix.isascii() and suffix.isalnum()):
        return None, None
    return name[:-4], suffix


def is_valid_first_name(path: Union[str, Path]) -> bool:
    """Check that `path` names the first segment of an image (`*.E01`)

    Args:
        path: Path of the segment file

    Returns:
        True if the file name ends with exactly `.E01`
    """
    _, suffix = _split_suffix(path)
    return suffix == FIRST_SUFFIX


def _increment_letters(suffix: list) -> list:
    for position in (2, 1, 0):
        suffix[position] = chr(ord(suffix[position]) + 1)
        if suffix[position] != "[":
            return suffix
        suffix[position] = "A"
    # every position wrapped: there is no name after ZZZ
    raise FormatError("Segment naming space exhausted")


def next_name(path: Union[str, Path]) -> Path:
    """Compute the name of the segment file that follows `path`

    Args:
        path: Path of the current segment file

    Returns:
        Path of the next segment file, in the same directory

    Raises:
        FormatError: If `path` has no 3 character suffix or the naming space
            is exhausted
    """
    stem, suffix = _split_suffix(path)
    if suffix is None:
        raise FormatError("Invalid E01 filename: no segment suffix", path)

    if suffix == SERIAL_E99:
        new_suffix = SERIAL_EAA
    elif suffix[1].isdigit():
        digits = list(suffix)
        if digits[2] == "9":
            digits[2] = "0"
            digits[1] = chr(ord(digits[1]) + 1)
        else:
            digits[2] = chr(ord(digits[2]) + 1)
        new_suffix = "".join(digits)
    else:
        try:
            new_suffix = "".join(_increment_letters(list(suffix)))
        except FormatError as e:
            raise FormatError(e.message, path) from None

    return Path(path).with_name("%s.%s" % (stem, new_suffix))
