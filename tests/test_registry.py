import pytest

from serial_plotter.stream import SignalNotFoundError, SignalRegistry


def test_register_if_new_is_idempotent():
    registry = SignalRegistry()
    assert registry.register_if_new("A") == (0, True)
    assert registry.register_if_new("B") == (1, True)
    assert registry.register_if_new("A") == (0, False)
    assert registry.names() == ["A", "B"]
    assert len(registry) == 2
    assert "B" in registry and "C" not in registry


def test_inclusion_defaults_true_and_toggles():
    registry = SignalRegistry()
    registry.register_if_new("A")
    registry.register_if_new("B")
    assert registry.is_included("A")
    registry.set_included("A", False)
    assert not registry.is_included("A")
    assert registry.included_names() == ["B"]
    registry.set_included("A", True)
    assert registry.included_names() == ["A", "B"]


def test_names_is_a_snapshot():
    registry = SignalRegistry()
    registry.register_if_new("A")
    names = registry.names()
    registry.register_if_new("B")
    assert names == ["A"]


def test_unknown_name_raises():
    registry = SignalRegistry()
    with pytest.raises(SignalNotFoundError):
        registry.is_included("missing")
    with pytest.raises(KeyError):
        registry.set_included("missing", True)
