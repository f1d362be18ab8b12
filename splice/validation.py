"""
splice.validation - Environment checks for the export tools.
"""

from __future__ import annotations

import shutil
import subprocess
from pathlib import Path
from typing import Any

from splice.exceptions import DependencyError, ScriptError

INSTALL_HINT = "Install with: brew install ffmpeg (macOS) or apt install ffmpeg (Linux)"


def tool_version(name: str) -> str:
    """Return the version of an ffmpeg-suite tool.

    Raises:
        DependencyError: If the tool is not on PATH
    """
    path = shutil.which(name)
    if not path:
        raise DependencyError(name, f"{name} not found in PATH", INSTALL_HINT)

    try:
        proc = subprocess.run([path, "-version"], capture_output=True, text=True, timeout=5)
        version_line = proc.stdout.split("\n")[0]
        return version_line.split()[2] if version_line else "unknown"
    except (subprocess.TimeoutExpired, IndexError):
        return "unknown"


def check_ffmpeg() -> dict[str, str]:
    """Check that FFmpeg and FFprobe are installed.

    Returns:
        Dict with 'ffmpeg_version' and 'ffprobe_version'

    Raises:
        DependencyError: If either tool is missing
    """
    return {
        "ffmpeg_version": tool_version("ffmpeg"),
        "ffprobe_version": tool_version("ffprobe"),
    }


def missing_sources(locators: list[str]) -> list[str]:
    """Locators that look like local paths but do not exist."""
    missing = []
    for locator in locators:
        if "://" in locator:
            continue
        if not Path(locator).is_file():
            missing.append(locator)
    return missing


def validate_sources(locators: list[str]) -> dict[str, Any]:
    """Check every local source exists before a render starts.

    Raises:
        ScriptError: Listing all missing files
    """
    missing = missing_sources(locators)
    if missing:
        msg = f"Missing {len(missing)} source file(s):\n"
        msg += "".join(f"  - {p}\n" for p in missing)
        raise ScriptError(msg)
    return {"checked": len(locators), "missing": []}
