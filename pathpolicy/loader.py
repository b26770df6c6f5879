"""Load tool policy overrides from YAML or JSON files."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from jsonschema import Draft202012Validator, ValidationError

from .models import POLICY_KINDS, PathConfig

LOGGER = logging.getLogger(__name__)

OVERRIDES_SCHEMA: Mapping[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "properties": {
        "version": {"const": 1},
        "tools": {
            "type": "object",
            "propertyNames": {"type": "string", "minLength": 1},
            "additionalProperties": {"enum": list(POLICY_KINDS)},
        },
    },
    "required": ["version", "tools"],
    "additionalProperties": False,
}

_VALIDATOR = Draft202012Validator(OVERRIDES_SCHEMA)
_YAML_SUFFIXES = {".yaml", ".yml"}


class PolicyFileError(Exception):
    """Raised when a policy override file cannot be loaded."""


def load_overrides(path: Path | str) -> dict[str, PathConfig]:
    """Read ``path`` and return its tool overrides keyed by tool name."""

    source = Path(path).expanduser()
    suffix = source.suffix.lower()
    if suffix not in _YAML_SUFFIXES and suffix != ".json":
        raise PolicyFileError(
            f"Unsupported policy file type for {source}: expected .yaml, .yml or .json"
        )
    if not source.is_file():
        raise PolicyFileError(f"Policy file not found: {source}")

    try:
        with source.open("r", encoding="utf-8") as handle:
            if suffix in _YAML_SUFFIXES:
                try:
                    document = yaml.safe_load(handle)
                except yaml.YAMLError as exc:
                    raise PolicyFileError(f"Failed to parse YAML policy file {source}: {exc}") from exc
            else:
                try:
                    document = json.load(handle)
                except json.JSONDecodeError as exc:
                    raise PolicyFileError(f"Failed to parse JSON policy file {source}: {exc}") from exc
    except UnicodeDecodeError as exc:
        raise PolicyFileError(f"Policy file {source} is not valid UTF-8: {exc}") from exc
    except OSError as exc:
        raise PolicyFileError(f"Failed to open policy file {source}: {exc}") from exc

    overrides = parse_overrides(document, source)
    LOGGER.info("loaded %d tool policy override(s) from %s", len(overrides), source)
    return overrides


def parse_overrides(document: Any, source: Path | str = "<memory>") -> dict[str, PathConfig]:
    """Validate a parsed override document and resolve its kinds."""

    if isinstance(document, Mapping) and isinstance(document.get("tools"), Mapping):
        odd_keys = [key for key in document["tools"] if not isinstance(key, str)]
        if odd_keys:
            listed = ", ".join(sorted(repr(key) for key in odd_keys))
            raise PolicyFileError(
                f"Policy file {source} has non-string tool name(s) {listed}; quote names"
                " such as \"yes\", \"no\", \"on\", \"off\" or \"true\" that YAML reads as"
                " booleans"
            )

    try:
        _VALIDATOR.validate(document)
    except ValidationError as exc:
        location = "/".join(str(part) for part in exc.absolute_path) or "<root>"
        raise PolicyFileError(
            f"Policy file {source} failed validation at {location}: {exc.message}"
        ) from exc

    tools: Mapping[str, str] = document["tools"]
    return {name: PathConfig.from_kind(kind) for name, kind in sorted(tools.items())}


__all__ = ["OVERRIDES_SCHEMA", "PolicyFileError", "load_overrides", "parse_overrides"]
