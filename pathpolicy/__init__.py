"""Tool policy table for the PATH sandboxing shim."""

from .hostos import detect_host_os  # noqa: F401
from .loader import PolicyFileError, load_overrides, parse_overrides  # noqa: F401
from .models import (  # noqa: F401
    ALLOWED,
    FORBIDDEN,
    LINUX_ONLY_PREBUILT,
    LOG,
    MISSING,
    POLICY_KINDS,
    PathConfig,
    policy_kind,
)
from .table import (  # noqa: F401
    CONFIGURATION,
    PolicyTable,
    PolicyTableError,
    apply_platform_overrides,
    build_table,
    default_table,
    get_config,
    reset_default_table,
)

__all__ = [
    "ALLOWED",
    "CONFIGURATION",
    "FORBIDDEN",
    "LINUX_ONLY_PREBUILT",
    "LOG",
    "MISSING",
    "POLICY_KINDS",
    "PathConfig",
    "PolicyFileError",
    "PolicyTable",
    "PolicyTableError",
    "apply_platform_overrides",
    "build_table",
    "default_table",
    "detect_host_os",
    "get_config",
    "load_overrides",
    "parse_overrides",
    "policy_kind",
    "reset_default_table",
]
