from unittest.mock import patch

from core.sessions import SessionRegistry


class TestSessionRegistry:
    def test_create_starts_without_token(self) -> None:
        registry = SessionRegistry()
        registry.create("energy")

        assert "energy" in registry
        assert registry.resolve("energy") is None
        [entry] = registry.list()
        assert entry.handle == "energy"
        assert entry.token is None
        assert entry.active is False

    def test_resolve_unknown_handle(self) -> None:
        assert SessionRegistry().resolve("nope") is None

    def test_update_is_last_write_wins(self) -> None:
        registry = SessionRegistry()
        registry.update("a", "tok-1")
        registry.update("a", "tok-2")

        assert registry.resolve("a") == "tok-2"
        assert len(registry) == 1

    def test_create_resets_existing_handle(self) -> None:
        registry = SessionRegistry()
        registry.update("a", "tok-1")
        registry.create("a")

        assert registry.resolve("a") is None

    def test_list_keeps_insertion_order_on_overwrite(self) -> None:
        registry = SessionRegistry()
        registry.create("first")
        registry.create("second")
        registry.update("first", "tok")

        entries = registry.list()
        assert [e.handle for e in entries] == ["first", "second"]
        assert entries[0].active is True
        assert entries[1].active is False

    def test_new_handle_format(self) -> None:
        with patch("core.sessions.time.time", return_value=1718000000.5):
            handle = SessionRegistry().new_handle()
        assert handle == "session_1718000000500"

    def test_new_handle_avoids_collisions(self) -> None:
        registry = SessionRegistry()
        with patch("core.sessions.time.time", return_value=1.0):
            first = registry.new_handle()
            registry.create(first)
            second = registry.new_handle()
            registry.create(second)
            third = registry.new_handle()

        assert first == "session_1000"
        assert second == "session_1000_1"
        assert third == "session_1000_2"
