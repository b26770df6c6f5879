"""Host operating system detection."""

from __future__ import annotations

import os
import sys
from collections.abc import Mapping

HOST_OS_ENV_KEY = "PATHPOLICY_HOST_OS"

DARWIN = "darwin"
LINUX = "linux"
WINDOWS = "windows"


def detect_host_os(environ: Mapping[str, str] | None = None) -> str:
    """Return the host OS id (``darwin``, ``linux``, ``windows``, ...).

    ``PATHPOLICY_HOST_OS`` overrides the interpreter's platform when set.
    """

    env = os.environ if environ is None else environ
    explicit = env.get(HOST_OS_ENV_KEY, "").strip().lower()
    if explicit:
        return explicit
    return normalize_platform(sys.platform)


def normalize_platform(platform_id: str) -> str:
    if platform_id == "darwin":
        return DARWIN
    if platform_id.startswith("linux"):
        return LINUX
    if platform_id in {"win32", "cygwin"}:
        return WINDOWS
    return platform_id


__all__ = [
    "DARWIN",
    "HOST_OS_ENV_KEY",
    "LINUX",
    "WINDOWS",
    "detect_host_os",
    "normalize_platform",
]
