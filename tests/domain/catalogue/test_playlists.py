"""Tests for the curated playlist registry."""

from poolsuite_cli.domain.catalogue.playlists import (
    PLAYLISTS,
    get_playlist,
    get_playlist_names,
    next_playlist_key,
)


class TestRegistry:
    def test_names_follow_registry_order(self):
        names = get_playlist_names()
        assert names[0] == "official"
        assert names == list(PLAYLISTS)
        assert len(names) == 8

    def test_every_playlist_points_at_a_soundcloud_set(self):
        for info in PLAYLISTS.values():
            assert info.url.startswith("https://soundcloud.com/poolsuite/sets/")

    def test_unknown_key(self):
        assert get_playlist("nope") is None


class TestNextPlaylistKey:
    """Test tab cycling between playlists."""

    def test_advances(self):
        assert next_playlist_key("a", ["a", "b", "c"]) == "b"

    def test_wraps_to_first(self):
        assert next_playlist_key("c", ["a", "b", "c"]) == "a"

    def test_unknown_current_gives_first(self):
        assert next_playlist_key("zzz", ["a", "b"]) == "a"

    def test_single_key_cycles_to_itself(self):
        assert next_playlist_key("a", ["a"]) == "a"

    def test_empty_keys_keeps_current(self):
        assert next_playlist_key("a", []) == "a"
