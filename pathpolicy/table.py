"""Static tool policy table and its platform resolution."""

from __future__ import annotations

import logging
import os
import threading
from collections.abc import Iterator, Mapping, MutableMapping
from pathlib import Path
from types import MappingProxyType

from .hostos import DARWIN, detect_host_os
from .loader import PolicyFileError, load_overrides
from .models import (
    ALLOWED,
    FORBIDDEN,
    LINUX_ONLY_PREBUILT,
    MISSING,
    POLICY_KINDS,
    PathConfig,
    is_named_config,
    policy_kind,
)

LOGGER = logging.getLogger(__name__)

OVERRIDES_ENV_KEY = "PATHPOLICY_OVERRIDES"

DARWIN_HOST_TOOLS = ("md5", "sw_vers", "xcrun")


class PolicyTableError(ValueError):
    """Raised when a policy table is built from invalid entries."""


CONFIGURATION: Mapping[str, PathConfig] = MappingProxyType(
    {
        "bash": ALLOWED,
        "bc": ALLOWED,
        "bzip2": ALLOWED,
        "date": ALLOWED,
        "dd": ALLOWED,
        "diff": ALLOWED,
        "egrep": ALLOWED,
        "expr": ALLOWED,
        "find": ALLOWED,
        "fuser": ALLOWED,
        "getopt": ALLOWED,
        "git": ALLOWED,
        "grep": ALLOWED,
        "gzip": ALLOWED,
        "hexdump": ALLOWED,
        "jar": ALLOWED,
        "java": ALLOWED,
        "javap": ALLOWED,
        "lsof": ALLOWED,
        "m4": ALLOWED,
        "nproc": ALLOWED,
        "openssl": ALLOWED,
        "patch": ALLOWED,
        "pstree": ALLOWED,
        "python3": ALLOWED,
        "realpath": ALLOWED,
        "rsync": ALLOWED,
        "sed": ALLOWED,
        "sh": ALLOWED,
        "tar": ALLOWED,
        "timeout": ALLOWED,
        "tr": ALLOWED,
        "unzip": ALLOWED,
        "xz": ALLOWED,
        "zip": ALLOWED,
        "zipinfo": ALLOWED,

        # Prebuilt cross toolchains shipped with the tree.
        "aarch64-linux-android-addr2line": ALLOWED,
        "aarch64-linux-android-ar": ALLOWED,
        "aarch64-linux-android-as": ALLOWED,
        "aarch64-linux-android-c++filt": ALLOWED,
        "aarch64-linux-android-dwp": ALLOWED,
        "aarch64-linux-android-elfedit": ALLOWED,
        "aarch64-linux-android-gcc": ALLOWED,
        "aarch64-linux-android-gcc-ar": ALLOWED,
        "aarch64-linux-android-gcc-nm": ALLOWED,
        "aarch64-linux-android-gcc-ranlib": ALLOWED,
        "aarch64-linux-android-gcov": ALLOWED,
        "aarch64-linux-android-gcov-tool": ALLOWED,
        "aarch64-linux-android-gprof": ALLOWED,
        "aarch64-linux-android-ld": ALLOWED,
        "aarch64-linux-android-ld.bfd": ALLOWED,
        "aarch64-linux-android-ld.gold": ALLOWED,
        "aarch64-linux-android-nm": ALLOWED,
        "aarch64-linux-android-objcopy": ALLOWED,
        "aarch64-linux-android-objdump": ALLOWED,
        "aarch64-linux-android-ranlib": ALLOWED,
        "aarch64-linux-android-readelf": ALLOWED,
        "aarch64-linux-android-size": ALLOWED,
        "aarch64-linux-android-strings": ALLOWED,
        "aarch64-linux-android-strip": ALLOWED,
        "aarch64-linux-gnu-as": ALLOWED,
        "arm-linux-androideabi-addr2line": ALLOWED,
        "arm-linux-androideabi-ar": ALLOWED,
        "arm-linux-androideabi-as": ALLOWED,
        "arm-linux-androideabi-c++filt": ALLOWED,
        "arm-linux-androideabi-cpp": ALLOWED,
        "arm-linux-androideabi-dwp": ALLOWED,
        "arm-linux-androideabi-elfedit": ALLOWED,
        "arm-linux-androideabi-gcc": ALLOWED,
        "arm-linux-androideabi-gcc-ar": ALLOWED,
        "arm-linux-androideabi-gcc-nm": ALLOWED,
        "arm-linux-androideabi-gcc-ranlib": ALLOWED,
        "arm-linux-androideabi-gcov": ALLOWED,
        "arm-linux-androideabi-gcov-tool": ALLOWED,
        "arm-linux-androideabi-gprof": ALLOWED,
        "arm-linux-androideabi-ld": ALLOWED,
        "arm-linux-androideabi-ld.bfd": ALLOWED,
        "arm-linux-androideabi-ld.gold": ALLOWED,
        "arm-linux-androideabi-nm": ALLOWED,
        "arm-linux-androideabi-objcopy": ALLOWED,
        "arm-linux-androideabi-objdump": ALLOWED,
        "arm-linux-androideabi-ranlib": ALLOWED,
        "arm-linux-androideabi-readelf": ALLOWED,
        "arm-linux-androideabi-size": ALLOWED,
        "arm-linux-androideabi-strings": ALLOWED,
        "arm-linux-androideabi-strip": ALLOWED,
        "arm-linux-androidkernel-addr2line": ALLOWED,
        "arm-linux-androidkernel-ar": ALLOWED,
        "arm-linux-androidkernel-as": ALLOWED,
        "arm-linux-androidkernel-c++filt": ALLOWED,
        "arm-linux-androidkernel-cpp": ALLOWED,
        "arm-linux-androidkernel-dwp": ALLOWED,
        "arm-linux-androidkernel-elfedit": ALLOWED,
        "arm-linux-androidkernel-gcc": ALLOWED,
        "arm-linux-androidkernel-gcc-ar": ALLOWED,
        "arm-linux-androidkernel-gcc-nm": ALLOWED,
        "arm-linux-androidkernel-gcc-ranlib": ALLOWED,
        "arm-linux-androidkernel-gcov": ALLOWED,
        "arm-linux-androidkernel-gcov-tool": ALLOWED,
        "arm-linux-androidkernel-gprof": ALLOWED,
        "arm-linux-androidkernel-ld": ALLOWED,
        "arm-linux-androidkernel-ld.bfd": ALLOWED,
        "arm-linux-androidkernel-ld.gold": ALLOWED,
        "arm-linux-androidkernel-nm": ALLOWED,
        "arm-linux-androidkernel-objcopy": ALLOWED,
        "arm-linux-androidkernel-objdump": ALLOWED,
        "arm-linux-androidkernel-ranlib": ALLOWED,
        "arm-linux-androidkernel-readelf": ALLOWED,
        "arm-linux-androidkernel-size": ALLOWED,
        "arm-linux-androidkernel-strings": ALLOWED,
        "arm-linux-androidkernel-strip": ALLOWED,

        # The host toolchain is unavailable; builds must use the in-tree one.
        "ar": FORBIDDEN,
        "as": FORBIDDEN,
        "cc": FORBIDDEN,
        "clang": FORBIDDEN,
        "clang++": FORBIDDEN,
        "gcc": FORBIDDEN,
        "g++": FORBIDDEN,
        "ld": FORBIDDEN,
        "ld.bfd": FORBIDDEN,
        "ld.gold": FORBIDDEN,
        "pkg-config": FORBIDDEN,

        # Replaced by the bundled toybox build on Linux hosts.
        "basename": LINUX_ONLY_PREBUILT,
        "cat": LINUX_ONLY_PREBUILT,
        "chmod": LINUX_ONLY_PREBUILT,
        "cmp": LINUX_ONLY_PREBUILT,
        "cp": LINUX_ONLY_PREBUILT,
        "comm": LINUX_ONLY_PREBUILT,
        "cut": LINUX_ONLY_PREBUILT,
        "dirname": LINUX_ONLY_PREBUILT,
        "du": LINUX_ONLY_PREBUILT,
        "echo": LINUX_ONLY_PREBUILT,
        "env": LINUX_ONLY_PREBUILT,
        "head": LINUX_ONLY_PREBUILT,
        "getconf": LINUX_ONLY_PREBUILT,
        "hostname": LINUX_ONLY_PREBUILT,
        "id": LINUX_ONLY_PREBUILT,
        "ln": LINUX_ONLY_PREBUILT,
        "ls": LINUX_ONLY_PREBUILT,
        "md5sum": LINUX_ONLY_PREBUILT,
        "mkdir": LINUX_ONLY_PREBUILT,
        "mktemp": LINUX_ONLY_PREBUILT,
        "mv": LINUX_ONLY_PREBUILT,
        "od": LINUX_ONLY_PREBUILT,
        "paste": LINUX_ONLY_PREBUILT,
        "pgrep": LINUX_ONLY_PREBUILT,
        "pkill": LINUX_ONLY_PREBUILT,
        "ps": LINUX_ONLY_PREBUILT,
        "pwd": LINUX_ONLY_PREBUILT,
        "readlink": LINUX_ONLY_PREBUILT,
        "rm": LINUX_ONLY_PREBUILT,
        "rmdir": LINUX_ONLY_PREBUILT,
        "seq": LINUX_ONLY_PREBUILT,
        "setsid": LINUX_ONLY_PREBUILT,
        "sha1sum": LINUX_ONLY_PREBUILT,
        "sha256sum": LINUX_ONLY_PREBUILT,
        "sha512sum": LINUX_ONLY_PREBUILT,
        "sleep": LINUX_ONLY_PREBUILT,
        "sort": LINUX_ONLY_PREBUILT,
        "stat": LINUX_ONLY_PREBUILT,
        "tail": LINUX_ONLY_PREBUILT,
        "tee": LINUX_ONLY_PREBUILT,
        "touch": LINUX_ONLY_PREBUILT,
        "true": LINUX_ONLY_PREBUILT,
        "uname": LINUX_ONLY_PREBUILT,
        "uniq": LINUX_ONLY_PREBUILT,
        "unix2dos": LINUX_ONLY_PREBUILT,
        "wc": LINUX_ONLY_PREBUILT,
        "whoami": LINUX_ONLY_PREBUILT,
        "which": LINUX_ONLY_PREBUILT,
        "xargs": LINUX_ONLY_PREBUILT,
        "xxd": LINUX_ONLY_PREBUILT,
    }
)


class PolicyTable:
    """Read-only mapping of tool names to :class:`PathConfig` records."""

    __slots__ = ("_entries", "_host_os")

    def __init__(self, entries: Mapping[str, PathConfig], *, host_os: str) -> None:
        for name, config in entries.items():
            if not isinstance(name, str) or not name:
                raise PolicyTableError(f"tool names must be non-empty strings, got {name!r}")
            if not is_named_config(config):
                raise PolicyTableError(f"tool '{name}' is bound to an unnamed record {config!r}")
        self._entries = MappingProxyType(dict(sorted(entries.items())))
        self._host_os = host_os

    @property
    def host_os(self) -> str:
        return self._host_os

    @property
    def entries(self) -> Mapping[str, PathConfig]:
        return self._entries

    def lookup(self, name: str) -> PathConfig:
        """Return the record for ``name``, or ``MISSING`` when it is not listed."""

        return self._entries.get(name, MISSING)

    def names(self, kind: str | None = None) -> tuple[str, ...]:
        if kind is None:
            return tuple(self._entries)
        target = PathConfig.from_kind(kind)
        return tuple(name for name, config in self._entries.items() if config == target)

    def counts(self) -> Mapping[str, int]:
        totals = {kind: 0 for kind in POLICY_KINDS}
        for config in self._entries.values():
            totals[policy_kind(config)] += 1
        return MappingProxyType(totals)

    def items(self):
        return self._entries.items()

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"PolicyTable(host_os={self._host_os!r}, entries={len(self._entries)})"


def apply_platform_overrides(configuration: MutableMapping[str, PathConfig], host_os: str) -> None:
    """Adjust ``configuration`` in place for ``host_os``.

    Darwin has no prebuilts for the Linux-only tools, so the host binaries are
    allowed instead, along with a few Darwin-specific utilities. Other hosts
    keep the static policy.
    """

    if host_os != DARWIN:
        return

    for name in DARWIN_HOST_TOOLS:
        configuration[name] = ALLOWED

    fallback = [name for name, config in configuration.items() if config.linux_only_prebuilt]
    for name in fallback:
        configuration[name] = ALLOWED
    LOGGER.debug("allowed %d host tools lacking darwin prebuilts", len(fallback))


def build_table(
    host_os: str,
    overrides: Mapping[str, PathConfig] | None = None,
) -> PolicyTable:
    """Return a fully resolved table for ``host_os``.

    ``overrides`` replace or extend the static entries before the platform
    adjustment runs. :data:`CONFIGURATION` itself is never modified.
    """

    configuration = dict(CONFIGURATION)
    if overrides:
        configuration.update(overrides)
    apply_platform_overrides(configuration, host_os)
    return PolicyTable(configuration, host_os=host_os)


_DEFAULT_TABLE: PolicyTable | None = None
_DEFAULT_LOCK = threading.Lock()


def default_table() -> PolicyTable:
    """Return the process-wide table, building it on first use."""

    global _DEFAULT_TABLE
    table = _DEFAULT_TABLE
    if table is not None:
        return table
    with _DEFAULT_LOCK:
        if _DEFAULT_TABLE is None:
            _DEFAULT_TABLE = _build_default_table()
        return _DEFAULT_TABLE


def _build_default_table() -> PolicyTable:
    overrides: Mapping[str, PathConfig] | None = None
    overrides_path = os.environ.get(OVERRIDES_ENV_KEY, "").strip()
    if overrides_path:
        try:
            overrides = load_overrides(Path(overrides_path))
        except PolicyFileError:
            LOGGER.exception(
                "ignoring %s=%s; using the built-in policy", OVERRIDES_ENV_KEY, overrides_path
            )
    return build_table(detect_host_os(), overrides)


def reset_default_table() -> None:
    global _DEFAULT_TABLE
    with _DEFAULT_LOCK:
        _DEFAULT_TABLE = None


def get_config(name: str, table: PolicyTable | None = None) -> PathConfig:
    """Return the shim policy for the tool basename ``name``."""

    if table is None:
        table = default_table()
    return table.lookup(name)


__all__ = [
    "CONFIGURATION",
    "DARWIN_HOST_TOOLS",
    "OVERRIDES_ENV_KEY",
    "PolicyTable",
    "PolicyTableError",
    "apply_platform_overrides",
    "build_table",
    "default_table",
    "get_config",
    "reset_default_table",
]
