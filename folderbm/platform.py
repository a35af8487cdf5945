"""Host collaborators for folderbm.

Detects the runtime platform once at import time and provides the small set
of host operations the bookmark store depends on: where the user profile
lives, what the current directory is, and whether a path is a directory.
Every other module imports from here instead of touching ``os`` directly,
which keeps the store itself free of host assumptions.

Supported platforms:
  - linux   (native Linux)
  - wsl     (Windows Subsystem for Linux)
  - macos   (macOS / Darwin)
  - windows (native Windows / PowerShell)
"""

from __future__ import annotations

import os
import platform
from pathlib import Path

from .log import logger

# ---------------------------------------------------------------------------
# Platform detection (runs once at import time)
# ---------------------------------------------------------------------------

_system = platform.system()  # "Linux", "Darwin", "Windows"

try:
    _uname_release = platform.uname().release.lower()
except OSError:
    _uname_release = ""

IS_WINDOWS = _system == "Windows"
IS_MACOS = _system == "Darwin"
IS_LINUX = _system == "Linux"
IS_WSL = IS_LINUX and "microsoft" in _uname_release

if IS_WINDOWS:
    PLATFORM = "windows"
elif IS_WSL:
    PLATFORM = "wsl"
elif IS_MACOS:
    PLATFORM = "macos"
else:
    PLATFORM = "linux"

# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------

PROFILE_ENV_VAR = "FOLDERBM_HOME"


def profile_directory() -> Path:
    """Return the per-user directory that holds the bookmark file.

    ``$FOLDERBM_HOME`` when set, otherwise the user's home directory
    (``%USERPROFILE%`` on Windows).
    """
    override = os.environ.get(PROFILE_ENV_VAR, "").strip()
    if override:
        return Path(override).expanduser()
    return Path.home()


def config_home() -> Path:
    """Return the folderbm config directory (preferences, log file)."""
    if IS_WINDOWS:
        appdata = os.environ.get("APPDATA", "")
        if appdata:
            return Path(appdata) / "folderbm"
    return Path.home() / ".folderbm"


def config_file(name: str) -> Path:
    """Return ``<config_home>/<name>``."""
    return config_home() / name


# ---------------------------------------------------------------------------
# Working directory
# ---------------------------------------------------------------------------


def current_directory() -> str:
    """Return the present working directory.

    Prefers ``$PWD`` when it names the same directory as ``os.getcwd()`` so
    that bookmarks keep the symlinked path the user actually typed.
    """
    cwd = os.getcwd()
    pwd = os.environ.get("PWD", "")
    if pwd and os.path.isabs(pwd):
        try:
            if os.path.samefile(pwd, cwd):
                return pwd
        except OSError:
            logger.debug("$PWD %s is not usable", pwd, exc_info=True)
    return cwd


def is_directory(path: str) -> bool:
    """True when *path* exists and is a directory (symlinks followed)."""
    return os.path.isdir(path)


def normalize_path(path: str, base: str | None = None) -> str:
    """Expand ``~`` and make *path* absolute without resolving symlinks."""
    expanded = os.path.expanduser(path)
    if not os.path.isabs(expanded):
        expanded = os.path.join(base or current_directory(), expanded)
    return os.path.normpath(expanded)


def shell_name() -> str:
    """Return a human-readable name for the platform's default shell."""
    if IS_WINDOWS:
        # Check if running in PowerShell vs cmd
        if os.environ.get("PSModulePath"):
            return "PowerShell"
        return "cmd.exe"
    shell = os.environ.get("SHELL", "/bin/sh")
    return Path(shell).name


# ---------------------------------------------------------------------------
# Path display helpers
# ---------------------------------------------------------------------------


def abbreviate_home(path_str: str) -> str:
    """Replace the user's home directory prefix with ``~``."""
    home = str(Path.home())
    if path_str == home or path_str.startswith(home + os.sep):
        return "~" + path_str[len(home) :]
    return path_str
