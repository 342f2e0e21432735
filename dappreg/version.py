from __future__ import annotations

"""
dappreg.version — semantic version string with optional git-describe suffix.

Rules:
- BASE_VERSION is the semver for this package.
- If DAPPREG_VERSION is set in the environment, that wins.
- Inside a git checkout, a PEP440 local suffix derived from
  `git describe --tags --dirty --always --abbrev=7` is appended, e.g.:
    0.1.0+2.gabc1234          (2 commits after tag v0.1.0)
    0.1.0+gabc1234.dirty      (no tag, dirty tree)
- If git is unavailable, fall back to BASE_VERSION.
"""

import os
import re
import subprocess
from typing import Optional

# Bump this on intentional releases.
BASE_VERSION = "0.1.0"


def _git_describe() -> Optional[str]:
    try:
        out = subprocess.check_output(
            ["git", "describe", "--tags", "--dirty", "--always", "--abbrev=7"],
            stderr=subprocess.DEVNULL,
            cwd=os.path.dirname(os.path.abspath(__file__)),
        )
    except (OSError, subprocess.CalledProcessError):
        return None
    return out.decode("utf-8", "replace").strip() or None


_PEP440_LOCAL_CLEAN = re.compile(r"[^a-zA-Z0-9.]+")


def _pep440_local_from_describe(desc: str) -> str:
    s = desc.replace("-", ".").replace("+", ".")
    if s.startswith("v") and len(s) > 1 and s[1].isdigit():
        s = s[1:]
    # "0.1.0.2.gabc1234" -> drop the tag itself, keep distance + sha
    if s.startswith(BASE_VERSION + "."):
        s = s[len(BASE_VERSION) + 1 :]
    s = _PEP440_LOCAL_CLEAN.sub(".", s)
    return re.sub(r"\.{2,}", ".", s).strip(".")


def build_version() -> str:
    v = os.getenv("DAPPREG_VERSION")
    if v:
        return v

    desc = _git_describe()
    if not desc or desc == f"v{BASE_VERSION}":
        return BASE_VERSION

    local = _pep440_local_from_describe(desc)
    return f"{BASE_VERSION}+{local}" if local else BASE_VERSION


__version__ = build_version()


def get_version() -> str:
    """Public helper returning the resolved version string."""
    return __version__


__all__ = ["__version__", "get_version", "BASE_VERSION"]
