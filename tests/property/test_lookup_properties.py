"""Property checks for table lookups."""

from __future__ import annotations

import pytest

from pathpolicy.models import MISSING
from pathpolicy.table import CONFIGURATION, build_table

pytest.importorskip("hypothesis")

from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

# The autouse environment fixture does not affect tables built here.
_SETTINGS = settings(suppress_health_check=[HealthCheck.function_scoped_fixture])

_TABLES = {host_os: build_table(host_os) for host_os in ("linux", "darwin", "windows")}
_DARWIN_ONLY = {"md5", "sw_vers", "xcrun"}


@_SETTINGS
@given(st.text(), st.sampled_from(sorted(_TABLES)))
def test_unlisted_names_resolve_to_missing(name: str, host_os: str) -> None:
    table = _TABLES[host_os]
    if name in table:
        return
    assert table.lookup(name) == MISSING


@_SETTINGS
@given(st.sampled_from(sorted(CONFIGURATION)))
def test_case_changed_names_are_not_matched(name: str) -> None:
    table = _TABLES["linux"]
    upper = name.upper()
    if upper == name or upper in CONFIGURATION:
        return
    assert table.lookup(upper) == MISSING


@_SETTINGS
@given(st.sampled_from(sorted(set(CONFIGURATION) | _DARWIN_ONLY)), st.sampled_from(sorted(_TABLES)))
def test_lookup_always_returns_a_named_record(name: str, host_os: str) -> None:
    config = _TABLES[host_os].lookup(name)
    assert config.kind in {"allowed", "forbidden", "linux_only_prebuilt", "missing"}
    if host_os == "darwin":
        assert not config.linux_only_prebuilt
