"""
simpletoken.version — package version and the build string shown by `simpletoken --version`.

    >>> version_string()
    'simpletoken 0.1.0 (v0.1.0-3-gdeadbee)'
"""

from __future__ import annotations

import os
import platform
import subprocess
from functools import lru_cache
from pathlib import Path
from typing import Dict, Optional

__version__ = "0.1.0"

_PKG_ROOT = Path(__file__).resolve().parent.parent


@lru_cache(maxsize=1)
def git_describe() -> Optional[str]:
    """
    `git describe` of the checkout the package runs from, or None when it is
    installed outside a git tree. SIMPLETOKEN_GIT_DESCRIBE overrides it.
    """
    override = os.getenv("SIMPLETOKEN_GIT_DESCRIBE")
    if override:
        return override.strip()
    try:
        out = subprocess.run(
            ["git", "-C", str(_PKG_ROOT), "describe", "--tags", "--dirty", "--always"],
            capture_output=True,
            text=True,
            check=True,
            timeout=2,
        )
    except (OSError, subprocess.SubprocessError):
        return None
    return out.stdout.strip() or None


def version_string() -> str:
    desc = git_describe()
    if desc and desc.lstrip("v") != __version__:
        return f"simpletoken {__version__} ({desc})"
    return f"simpletoken {__version__}"


def version_metadata() -> Dict[str, Optional[str]]:
    """Version fields for `info --json` and diagnostics."""
    return {
        "version": __version__,
        "describe": git_describe(),
        "python": platform.python_version(),
    }


__all__ = ["__version__", "git_describe", "version_string", "version_metadata"]
