# =============================================================================
# tests/test_ai_cache.py - AI Result Cache Tests
# =============================================================================
# Cache reads and writes against a FakeSupabase client.
# =============================================================================

from datetime import timedelta

from lib.ai_cache import AICache, CacheTier, make_cache_key
from lib.utils import utc_now


class TestCacheKey:

    def test_dict_order_does_not_matter(self):
        a = make_cache_key("company", {"name": "Acme", "industry": "Tech"})
        b = make_cache_key("company", {"industry": "Tech", "name": "Acme"})

        assert a == b

    def test_prefix_and_digest(self):
        key = make_cache_key("doc_analysis", "some text")

        assert key.startswith("doc_analysis_")
        assert len(key) == len("doc_analysis_") + 64

    def test_different_parts_differ(self):
        assert make_cache_key("m", ["opp-1"]) != make_cache_key("m", ["opp-2"])


class TestCacheTier:

    def test_ttls(self):
        assert CacheTier.REALTIME.ttl == timedelta(minutes=5)
        assert CacheTier.HOURLY.ttl == timedelta(hours=1)
        assert CacheTier.DAILY.ttl == timedelta(hours=24)
        assert CacheTier.WEEKLY.ttl == timedelta(days=7)


class TestAICache:

    def test_miss(self, fake_supabase):
        assert AICache.get("missing") is None

    def test_hit_increments_hit_count(self, fake_supabase):
        fake_supabase.tables["ai_cache"] = [{
            "data": {"summary": "cached"},
            "expires_at": (utc_now() + timedelta(minutes=10)).isoformat(),
            "hit_count": 2,
        }]

        assert AICache.get("key") == {"summary": "cached"}
        assert fake_supabase.writes("ai_cache", "update") == [{"hit_count": 3}]

    def test_expired_entry_is_a_miss(self, fake_supabase):
        fake_supabase.tables["ai_cache"] = [{
            "data": {"summary": "stale"},
            "expires_at": (utc_now() - timedelta(seconds=1)).isoformat(),
            "hit_count": 0,
        }]

        assert AICache.get("key") is None
        assert fake_supabase.writes("ai_cache", "update") == []

    def test_set_upserts_with_tier_expiry(self, fake_supabase):
        before = utc_now()

        AICache.set("key", {"a": 1}, CacheTier.DAILY, cache_type="doc_analysis")

        [row] = fake_supabase.writes("ai_cache", "upsert")
        assert row["cache_key"] == "key"
        assert row["tier"] == "tier3_daily"
        assert row["cache_type"] == "doc_analysis"
        assert row["expires_at"] >= (before + timedelta(hours=24)).isoformat()

    def test_purge_expired_counts_deleted_rows(self, fake_supabase):
        fake_supabase.tables["ai_cache"] = [{"cache_key": "a"}, {"cache_key": "b"}]

        assert AICache.purge_expired() == 2
        [query] = fake_supabase.queries_for("ai_cache")
        assert query.called("delete")
        assert query.called("lt")[0][0][0] == "expires_at"
