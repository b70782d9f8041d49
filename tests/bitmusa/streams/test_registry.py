"""
Subscription Registry Tests.
"""

from unittest.mock import MagicMock

import pytest

from bitmusa.streams import SubscriptionRegistry


def make_connection(dead=False):
    connection = MagicMock()
    connection.is_dead = dead
    return connection


class TestSubscriptionRegistry:
    """Tests for the channel -> connection / callback maps."""

    def test_register_and_bind(self):
        registry = SubscriptionRegistry()
        callback = MagicMock()
        connection = make_connection()

        registry.register("/ws/a", callback)
        previous = registry.bind("/ws/a", connection)

        assert previous is None
        assert "/ws/a" in registry
        assert len(registry) == 1
        assert registry.get("/ws/a") is connection
        assert registry.callback_for("/ws/a") is callback
        assert registry.is_active("/ws/a")

    def test_bind_requires_callback(self):
        """A connection cannot exist without a registered callback."""
        registry = SubscriptionRegistry()

        with pytest.raises(KeyError):
            registry.bind("/ws/a", make_connection())

    def test_rebind_returns_previous(self):
        registry = SubscriptionRegistry()
        registry.register("/ws/a", MagicMock())
        first = make_connection()
        second = make_connection()

        registry.bind("/ws/a", first)

        assert registry.bind("/ws/a", second) is first
        assert registry.get("/ws/a") is second
        assert len(registry) == 1

    def test_dead_entry_is_not_active(self):
        registry = SubscriptionRegistry()
        registry.register("/ws/a", MagicMock())
        registry.bind("/ws/a", make_connection(dead=True))

        assert "/ws/a" in registry
        assert not registry.is_active("/ws/a")
        assert not registry.is_active("/ws/unknown")

    def test_remove(self):
        registry = SubscriptionRegistry()
        connection = make_connection()
        registry.register("/ws/a", MagicMock())
        registry.bind("/ws/a", connection)

        assert registry.remove("/ws/a") is connection
        assert "/ws/a" not in registry
        assert registry.remove("/ws/a") is None
        with pytest.raises(KeyError):
            registry.callback_for("/ws/a")

    def test_snapshot_iteration(self):
        """Iteration survives mutation of the registry."""
        registry = SubscriptionRegistry()
        for name in ("/ws/a", "/ws/b"):
            registry.register(name, MagicMock())
            registry.bind(name, make_connection())

        for name in registry:
            registry.remove(name)

        assert len(registry) == 0
        assert registry.connections() == []
