"""Tests for the DNS cache TTL setting and its scoped override."""

import pytest

from paygate_sdk._internal.dispatch.dns import (
    DNS_CACHE_TTL_DISABLED,
    DNS_CACHE_TTL_FOREVER,
    DnsCacheSetting,
    dns_cache_disabled,
)


class TestDnsCacheSetting:
    """Tests for DnsCacheSetting."""

    def test_unset_by_default(self):
        """Should start unset."""
        assert DnsCacheSetting().get() is None

    def test_set_and_get(self):
        """Should store the TTL."""
        setting = DnsCacheSetting()
        setting.set(30)
        assert setting.get() == 30

    @pytest.mark.parametrize(
        ("ttl", "expected"),
        [(None, None), (-1, None), (0, 0.0), (30, 30.0)],
    )
    def test_keepalive_expiry(self, ttl, expected):
        """Should bound keep-alive by the TTL; negative or unset means no limit."""
        assert DnsCacheSetting(ttl).keepalive_expiry() == expected


class TestDnsCacheDisabled:
    """Tests for dns_cache_disabled()."""

    def test_disables_inside_block(self):
        """Should force caching off within the block."""
        setting = DnsCacheSetting(60)
        with dns_cache_disabled(setting):
            assert setting.get() == DNS_CACHE_TTL_DISABLED

    def test_restores_previous_value(self):
        """Should restore the saved value on exit."""
        setting = DnsCacheSetting(60)
        with dns_cache_disabled(setting):
            pass
        assert setting.get() == 60

    def test_falls_back_to_forever_when_unset(self):
        """Should restore the cache-forever fallback if nothing was set."""
        setting = DnsCacheSetting()
        with dns_cache_disabled(setting):
            pass
        assert setting.get() == DNS_CACHE_TTL_FOREVER

    def test_restores_on_error(self):
        """Should restore even when the block raises."""
        setting = DnsCacheSetting(5)
        with pytest.raises(RuntimeError), dns_cache_disabled(setting):
            raise RuntimeError("boom")
        assert setting.get() == 5
