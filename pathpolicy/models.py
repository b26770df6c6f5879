"""Policy records consumed by the PATH sandboxing shim.

A :class:`PathConfig` describes how the shim treats a single executable name.
Only five combinations are meaningful; they are exposed as module constants
and every table entry must be structurally equal to one of them.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any


@dataclass(frozen=True, slots=True)
class PathConfig:
    """Shim behaviour for one tool name."""

    # Create the symlink for this tool in the sandboxed PATH.
    symlink: bool
    # Report usages of this tool to the build log.
    log: bool
    # Exit with an error instead of invoking the underlying tool.
    error: bool
    # A Linux-specific prebuilt replaces the host tool. Darwin falls back to
    # the host executable.
    linux_only_prebuilt: bool = False

    @classmethod
    def from_kind(cls, kind: str) -> PathConfig:
        try:
            return _CONFIG_BY_KIND[kind]
        except KeyError as exc:
            raise ValueError(
                f"unknown policy kind '{kind}' (expected one of: {', '.join(POLICY_KINDS)})"
            ) from exc

    @property
    def kind(self) -> str:
        return policy_kind(self)

    def to_payload(self) -> dict[str, Any]:
        """Serialise the record to a JSON-compatible payload."""

        return {
            "kind": self.kind,
            "symlink": self.symlink,
            "log": self.log,
            "error": self.error,
            "linux_only_prebuilt": self.linux_only_prebuilt,
        }


ALLOWED = PathConfig(symlink=True, log=False, error=False)
FORBIDDEN = PathConfig(symlink=False, log=True, error=True)
LOG = PathConfig(symlink=True, log=True, error=False)
# Used for names absent from the table: the symlink exists, but every use is
# logged and refused.
MISSING = PathConfig(symlink=True, log=True, error=True)
LINUX_ONLY_PREBUILT = PathConfig(
    symlink=False,
    log=True,
    error=True,
    linux_only_prebuilt=True,
)

_CONFIG_BY_KIND = MappingProxyType(
    {
        "allowed": ALLOWED,
        "forbidden": FORBIDDEN,
        "log": LOG,
        "missing": MISSING,
        "linux_only_prebuilt": LINUX_ONLY_PREBUILT,
    }
)
_KIND_BY_CONFIG = MappingProxyType({config: kind for kind, config in _CONFIG_BY_KIND.items()})

POLICY_KINDS: tuple[str, ...] = tuple(_CONFIG_BY_KIND)


def policy_kind(config: PathConfig) -> str:
    """Return the kind id of ``config``.

    Raises ``ValueError`` when ``config`` is not one of the named records.
    """

    try:
        return _KIND_BY_CONFIG[config]
    except (KeyError, TypeError) as exc:
        raise ValueError(f"{config!r} is not a named policy record") from exc


def is_named_config(value: object) -> bool:
    return isinstance(value, PathConfig) and value in _KIND_BY_CONFIG


__all__ = [
    "ALLOWED",
    "FORBIDDEN",
    "LINUX_ONLY_PREBUILT",
    "LOG",
    "MISSING",
    "POLICY_KINDS",
    "PathConfig",
    "is_named_config",
    "policy_kind",
]
