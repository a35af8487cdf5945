"""User preferences for folderbm.

Loads settings from ~/.folderbm/preferences.yaml.
Falls back to sensible defaults if the file doesn't exist or is invalid.
Creates a default file on first run so users can discover and edit it.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from .log import logger
from .platform import config_file

PREFS_PATH = config_file("preferences.yaml")

_DEFAULT_YAML = """\
# folderbm preferences
# Delete this file to reset to defaults.

names:
  case_sensitive: true           # treat "Work" and "work" as different bookmarks

prompts:
  confirm: false                 # ask before every set/remove

display:
  show_stale: true               # mark bookmarks whose directory is gone in `list`
"""

# (section, key) -> python type, for the `config` command
KNOWN_KEYS: dict[tuple[str, str], type] = {
    ("names", "case_sensitive"): bool,
    ("prompts", "confirm"): bool,
    ("display", "show_stale"): bool,
}


@dataclass
class NameRules:
    """How bookmark names compare."""

    case_sensitive: bool = True


@dataclass
class PromptPreferences:
    """Confirmation behaviour for mutating commands."""

    confirm: bool = False


@dataclass
class DisplayPreferences:
    """Display settings for listings."""

    show_stale: bool = True


@dataclass
class Preferences:
    """Top-level folderbm preferences."""

    names: NameRules = field(default_factory=NameRules)
    prompts: PromptPreferences = field(default_factory=PromptPreferences)
    display: DisplayPreferences = field(default_factory=DisplayPreferences)


def parse_bool(value: object) -> bool:
    """Interpret YAML-ish and command-line spellings of a boolean."""
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in ("1", "true", "yes", "on"):
        return True
    if text in ("0", "false", "no", "off"):
        return False
    raise ValueError(f"not a boolean: {value!r}")


def load_preferences(path: Path | None = None) -> Preferences:
    """Load preferences from YAML file.

    Falls back to sensible defaults if the file doesn't exist or is invalid.
    Creates a default preferences file on first run.
    """
    path = path or PREFS_PATH
    prefs = Preferences()

    if path.exists():
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
            for (section, key), _kind in KNOWN_KEYS.items():
                values = data.get(section)
                if isinstance(values, dict) and key in values:
                    setattr(getattr(prefs, section), key, parse_bool(values[key]))
        except (OSError, yaml.YAMLError, ValueError, AttributeError):
            logger.warning("ignoring unreadable preferences file %s", path)
            logger.debug("preferences parse error", exc_info=True)
            return Preferences()
    else:
        # Create default file for user to customize
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(_DEFAULT_YAML, encoding="utf-8")
        except OSError:
            logger.debug("could not write default preferences to %s", path, exc_info=True)

    return prefs


def save_preference(section: str, key: str, value: bool, path: Path | None = None) -> None:
    """Persist one preference value to the preferences file.

    Surgically updates only that value, preserving the rest of the file
    (including user comments) as-is.  Raises ``KeyError`` for unknown keys
    and ``OSError`` when the file cannot be written.
    """
    if (section, key) not in KNOWN_KEYS:
        raise KeyError(f"{section}.{key}")
    path = path or PREFS_PATH
    if path.exists():
        text = path.read_text(encoding="utf-8")
    else:
        path.parent.mkdir(parents=True, exist_ok=True)
        text = _DEFAULT_YAML

    rendered = "true" if value else "false"
    section_re = rf"^{re.escape(section)}:.*$"
    # Only match the key inside its own section
    block = re.search(rf"({section_re}\n)((?:[ \t]+.*\n?|\n)*)", text, re.MULTILINE)
    if block and re.search(rf"^\s+{key}:", block.group(2), re.MULTILINE):
        body = re.sub(
            rf"^(\s+{key}:)[ \t]*\S+(.*)$",
            rf"\g<1> {rendered}\g<2>",
            block.group(2),
            count=1,
            flags=re.MULTILINE,
        )
        text = text[: block.start(2)] + body + text[block.end(2) :]
    elif block:
        # section exists but this key is missing
        text = text[: block.end(1)] + f"  {key}: {rendered}\n" + text[block.end(1) :]
    else:
        # No section at all, append it
        text = text.rstrip() + f"\n\n{section}:\n  {key}: {rendered}\n"

    path.write_text(text, encoding="utf-8")
    logger.debug("saved preference %s.%s=%s to %s", section, key, rendered, path)
