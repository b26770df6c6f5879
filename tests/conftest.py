from __future__ import annotations

import pathlib
import sys
from collections.abc import Iterator

import pytest

REPO_ROOT = pathlib.Path(__file__).resolve().parents[1]

if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from pathpolicy.hostos import HOST_OS_ENV_KEY
from pathpolicy.table import OVERRIDES_ENV_KEY, reset_default_table


@pytest.fixture(scope="session")
def repo_root() -> pathlib.Path:
    return REPO_ROOT


@pytest.fixture(autouse=True)
def isolated_policy_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    monkeypatch.delenv(HOST_OS_ENV_KEY, raising=False)
    monkeypatch.delenv(OVERRIDES_ENV_KEY, raising=False)
    reset_default_table()
    yield
    reset_default_table()
