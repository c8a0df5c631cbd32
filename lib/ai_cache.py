# =============================================================================
# lib/ai_cache.py - AI Result Cache
# =============================================================================
# Caches OpenAI responses in the `ai_cache` table so repeated analyses of the
# same document, company or application skip the model call.
#
# Each entry has a tier that fixes its lifetime:
#   tier1_realtime  5 minutes
#   tier2_hourly    1 hour
#   tier3_daily     24 hours
#   tier4_weekly    7 days
#
# There is no capacity bound. Expired rows are ignored on read and removed by
# the purge_ai_cache worker task.
#
# The cache never breaks a request: read errors count as a miss, write
# errors are logged and dropped.
#
# Usage:
#   key = make_cache_key("doc_analysis", text[:1000])
#   cached = AICache.get(key)
#   if cached is None:
#       result = call_openai(...)
#       AICache.set(key, result, CacheTier.DAILY, cache_type="doc_analysis")
# =============================================================================

from __future__ import annotations

import hashlib
import json
import logging
from datetime import timedelta
from enum import Enum
from typing import Any

from lib.supabase_client import SupabaseClient
from lib.utils import parse_datetime, utc_now

logger = logging.getLogger(__name__)

CACHE_TABLE = "ai_cache"


class CacheTier(str, Enum):
    """Cache lifetimes, stored by value in the `tier` column."""

    REALTIME = "tier1_realtime"
    HOURLY = "tier2_hourly"
    DAILY = "tier3_daily"
    WEEKLY = "tier4_weekly"

    @property
    def ttl(self) -> timedelta:
        return _TIER_TTL[self]


_TIER_TTL = {
    CacheTier.REALTIME: timedelta(minutes=5),
    CacheTier.HOURLY: timedelta(hours=1),
    CacheTier.DAILY: timedelta(hours=24),
    CacheTier.WEEKLY: timedelta(days=7),
}


def make_cache_key(prefix: str, *parts: Any) -> str:
    """
    Build a deterministic cache key from request parameters.

    Parts are JSON-encoded with sorted keys, so dicts with the same
    content hash identically regardless of insertion order.

    Example:
        make_cache_key("matches", ["541511"], ["opp-1", "opp-2"])
        # "matches_5f2c...e1"
    """
    payload = json.dumps(parts, sort_keys=True, default=str, separators=(",", ":"))
    digest = hashlib.sha256(payload.encode("utf-8")).hexdigest()
    return f"{prefix}_{digest}"


class AICache:
    """TTL-keyed lookup table over `ai_cache`."""

    @classmethod
    def get(cls, key: str) -> Any | None:
        """
        Return cached data for `key`, or None on miss/expiry/error.

        A hit increments the row's hit_count.
        """
        try:
            client = SupabaseClient.get_client()
            response = (
                client.table(CACHE_TABLE)
                .select("data, expires_at, hit_count")
                .eq("cache_key", key)
                .limit(1)
                .execute()
            )
            rows = response.data or []
            if not rows:
                return None

            row = rows[0]
            expires_at = parse_datetime(row.get("expires_at"))
            if expires_at is None or expires_at <= utc_now():
                logger.debug(f"AI cache expired: {key}")
                return None

            client.table(CACHE_TABLE).update(
                {"hit_count": (row.get("hit_count") or 0) + 1}
            ).eq("cache_key", key).execute()

            logger.debug(f"AI cache hit: {key}")
            return row.get("data")

        except Exception as e:
            logger.warning(f"AI cache read failed for {key}: {e}")
            return None

    @classmethod
    def set(
        cls,
        key: str,
        data: Any,
        tier: CacheTier = CacheTier.HOURLY,
        cache_type: str = "general",
    ) -> None:
        """Upsert a cache entry that expires after the tier's TTL."""
        expires_at = utc_now() + tier.ttl
        try:
            client = SupabaseClient.get_client()
            client.table(CACHE_TABLE).upsert(
                {
                    "cache_key": key,
                    "cache_type": cache_type,
                    "data": data,
                    "tier": tier.value,
                    "expires_at": expires_at.isoformat(),
                    "hit_count": 0,
                },
                on_conflict="cache_key",
            ).execute()
            logger.debug(f"AI cache stored: {key} ({tier.value})")
        except Exception as e:
            logger.warning(f"AI cache write failed for {key}: {e}")

    @classmethod
    def purge_expired(cls) -> int:
        """
        Delete expired rows.

        Returns:
            Number of rows removed
        """
        client = SupabaseClient.get_client()
        response = (
            client.table(CACHE_TABLE)
            .delete()
            .lt("expires_at", utc_now().isoformat())
            .execute()
        )
        removed = len(response.data or [])
        logger.info(f"Purged {removed} expired AI cache entries")
        return removed
