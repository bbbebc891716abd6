"""Shared fixtures for the playset engine tests."""

from __future__ import annotations

import pytest

from Utils.active_set import ActiveModSet
from Utils.mod_record import ModRecord


def invariant_holds(active: ActiveModSet, universe: list[ModRecord]) -> bool:
    """Every active mod is enabled at its index; every other mod is off at -1."""
    mods = active.mods()
    keys = [m.key for m in mods]
    if len(keys) != len(set(keys)):
        return False
    for index, record in enumerate(mods):
        if not record.enabled or record.load_order != index:
            return False
    for record in universe:
        if record not in active and (record.enabled or record.load_order != -1):
            return False
    return True


@pytest.fixture
def universe() -> list[ModRecord]:
    """Three discovered mods, all disabled."""
    return [ModRecord("A.mod"), ModRecord("B.mod"), ModRecord("C.mod")]


@pytest.fixture
def active(universe: list[ModRecord]) -> ActiveModSet:
    """An empty active set tracking the universe fixture."""
    active_set = ActiveModSet()
    active_set.track(universe)
    return active_set


@pytest.fixture
def events(active: ActiveModSet) -> list:
    """ActiveSetChanged events emitted by the active fixture."""
    received: list = []
    active.subscribe(received.append)
    return received


@pytest.fixture
def check_invariant(active: ActiveModSet, universe: list[ModRecord]):
    """Callable that checks the load order invariant for the fixtures above."""
    return lambda: invariant_holds(active, universe)
