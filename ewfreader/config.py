"""YAML settings and extraction plans for the console script"""

import logging
from collections import namedtuple
from pathlib import Path
from typing import Optional, Union

import yaml

DEFAULT_SETTINGS = {
    "log_level": "WARNING",
    "log_format": "[%(levelname)s] %(name)s: %(message)s",
    "read_size": 1024 * 1024,
}

ImageRange = namedtuple("ImageRange", "name offset length")
ExtractionPlan = namedtuple("ExtractionPlan", "dirname ranges")


class ConfigError(ValueError):
    """A settings file or an extraction plan is malformed"""


def _load_yaml(filename: Union[str, Path]):
    with open(filename, "r") as _file:
        try:
            return yaml.safe_load(_file.read())
        except yaml.YAMLError as e:
            raise ConfigError("%s: invalid YAML (%s)" % (filename, e)) from e


def load_settings(filename: Optional[Union[str, Path]] = None) -> dict:
    """Load the console settings, falling back to defaults for missing keys

    Args:
        filename: YAML file with `log_level`, `log_format` and `read_size` keys

    Returns:
        The settings dictionary

    Raises:
        ConfigError: If the file is not a mapping or a value is invalid
    """
    settings = dict(DEFAULT_SETTINGS)
    if filename is None:
        return settings

    data = _load_yaml(filename)
    if data is None:
        return settings
    if not isinstance(data, dict):
        raise ConfigError("%s: settings must be a mapping" % filename)

    unknown = set(data) - set(DEFAULT_SETTINGS)
    if unknown:
        raise ConfigError("%s: unknown settings %s" % (filename, ", ".join(sorted(unknown))))
    settings.update(data)

    if not isinstance(settings["read_size"], int) or settings["read_size"] <= 0:
        raise ConfigError("%s: read_size must be a positive integer" % filename)
    if not isinstance(logging.getLevelName(str(settings["log_level"]).upper()), int):
        raise ConfigError("%s: unknown log_level %r" % (filename, settings["log_level"]))
    return settings


def setup_logging(settings: dict, verbose: int = 0):
    """Configure the root logger; each `verbose` step lowers the level by one notch"""
    level = logging.getLevelName(str(settings["log_level"]).upper())
    level = max(logging.DEBUG, level - 10 * verbose)
    logging.basicConfig(level=level, format=settings["log_format"])


def load_extraction_plan(filename: Union[str, Path]) -> ExtractionPlan:
    """Load a list of named image ranges to extract

    Example:

        dirname: partitions
        ranges:
          - name: mbr.bin
            offset: 0
            length: 512

    Raises:
        ConfigError: If a key is missing or a value is invalid
    """
    data = _load_yaml(filename)
    if not isinstance(data, dict) or "ranges" not in data:
        raise ConfigError("%s: an extraction plan needs a 'ranges' list" % filename)

    ranges = []
    for i, entry in enumerate(data["ranges"] or []):
        try:
            image_range = ImageRange(
                str(entry["name"]), int(entry["offset"]), int(entry["length"])
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ConfigError("%s: invalid range #%d (%s)" % (filename, i, e)) from e
        if image_range.offset < 0 or image_range.length < 0:
            raise ConfigError("%s: negative offset or length in range #%d" % (filename, i))
        if Path(image_range.name).name != image_range.name:
            raise ConfigError("%s: range name must be a plain file name: %s" % (filename, image_range.name))
        ranges.append(image_range)

    return ExtractionPlan(str(data.get("dirname") or "."), ranges)
