"""Unit tests for core/dispatch.py"""

import pytest

from mdcbridge.core.dispatch import DispatchTable


def test_register_and_lookup():
    table = DispatchTable("test")

    @table.register("a", "b")
    def handler(x):
        return x * 2

    assert table.lookup("a") is handler
    assert table.lookup("b")(3) == 6
    assert "a" in table and "c" not in table
    assert table.kinds() == frozenset({"a", "b"})


def test_duplicate_registration_raises():
    table = DispatchTable("test")
    table.register("a")(lambda: None)
    with pytest.raises(ValueError, match="duplicate handler"):
        table.register("a")(lambda: None)


def test_lookup_without_fallback_raises():
    with pytest.raises(KeyError):
        DispatchTable("test").lookup("missing")


def test_lookup_uses_fallback():
    table = DispatchTable("test")

    @table.set_fallback
    def fallback():
        return "fallback"

    assert table.lookup("anything")() == "fallback"
    assert "anything" not in table


def test_require_reports_missing_kinds():
    """Exhaustiveness check names every kind without a dedicated handler."""
    table = DispatchTable("test", fallback=lambda: None)
    table.register(int)(lambda: None)
    table.require([int])
    with pytest.raises(RuntimeError, match="str, float"):
        table.require([int, str, float])
