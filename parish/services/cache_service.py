"""Query-result cache for expensive statistics and search results.

Two in-process stores are available. ``TaggedMemoryCache`` groups entries by
tag so related results can be invalidated together; ``SimpleMemoryCache``
only knows keys and raises ``CacheTagsNotSupported`` for tag operations, in
which case the service falls back to untagged writes and global flushes.
"""

import hashlib
import logging
import threading
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import text
from sqlalchemy.orm import Session

from parish.consts import MEMBERSHIP_STATUSES
from parish.exceptions import CacheTagsNotSupported
from parish.services.dialect_service import DatabaseCompatibilityService

logger = logging.getLogger(__name__)

_MISSING = object()


@dataclass
class CacheEntry:
    value: Any
    expires_at: float | None
    tags: frozenset[str]


class SimpleMemoryCache:
    """Thread-safe key/value store with per-entry TTL and no tag support."""

    backend_name = "simple"
    supports_tags = False

    def __init__(self, prefix: str = "parish", clock: Callable[[], float] = time.monotonic):
        self.prefix = prefix
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def _check_tags(self, tags: Iterable[str] | None) -> frozenset[str]:
        tag_set = frozenset(tags or ())
        if tag_set and not self.supports_tags:
            raise CacheTagsNotSupported(f"{self.backend_name} cache does not support tags")
        return tag_set

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return default
            if entry.expires_at is not None and entry.expires_at <= self._clock():
                del self._entries[key]
                return default
            return entry.value

    def put(self, key: str, value: Any, ttl: int | None, tags: Iterable[str] | None = None) -> None:
        tag_set = self._check_tags(tags)
        expires_at = None if ttl is None else self._clock() + ttl
        with self._lock:
            self._purge_expired()
            self._entries[key] = CacheEntry(value=value, expires_at=expires_at, tags=tag_set)

    def remember(
        self,
        key: str,
        ttl: int | None,
        generator: Callable[[], Any],
        tags: Iterable[str] | None = None,
    ) -> Any:
        """Return the cached value for ``key`` or compute, store and return it."""
        self._check_tags(tags)
        value = self.get(key, _MISSING)
        if value is not _MISSING:
            return value
        value = generator()
        self.put(key, value, ttl, tags)
        return value

    def has(self, key: str) -> bool:
        return self.get(key, _MISSING) is not _MISSING

    def forget(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def _purge_expired(self) -> None:
        # Caller holds the lock
        now = self._clock()
        expired = [
            key for key, entry in self._entries.items()
            if entry.expires_at is not None and entry.expires_at <= now
        ]
        for key in expired:
            del self._entries[key]

    def flush(self) -> None:
        with self._lock:
            self._entries.clear()

    def flush_tags(self, tags: Iterable[str]) -> int:
        self._check_tags(tags)
        return 0

    def __len__(self) -> int:
        now = self._clock()
        with self._lock:
            return sum(
                1 for entry in self._entries.values()
                if entry.expires_at is None or entry.expires_at > now
            )


class TaggedMemoryCache(SimpleMemoryCache):
    """Memory store whose entries can be flushed by tag."""

    backend_name = "tagged"
    supports_tags = True

    def flush_tags(self, tags: Iterable[str]) -> int:
        tag_set = frozenset(tags)
        with self._lock:
            doomed = [key for key, entry in self._entries.items() if entry.tags & tag_set]
            for key in doomed:
                del self._entries[key]
        return len(doomed)


def create_cache_store(backend: str) -> SimpleMemoryCache:
    """Build the store named by the CACHE_BACKEND setting."""
    if backend == "simple":
        return SimpleMemoryCache()
    return TaggedMemoryCache()


def _plain(value: Any) -> Any:
    if isinstance(value, Decimal):
        return float(value)
    if value is None:
        return 0
    return value


class CacheOptimizationService:
    """Caches dashboard statistics, filter options and search results."""

    CACHE_DURATIONS = {
        "stats": 300,
        "filters": 3600,
        "search": 60,
        "reports": 1800,
        "dashboard": 120,
    }

    CACHE_TAGS = {
        "members": "members",
        "families": "families",
        "sacraments": "sacraments",
        "activities": "activities",
        "tithes": "tithes",
        "stats": "stats",
        "dashboard": "dashboard",
    }

    STATS_TYPES = ("dashboard", "members", "financial", "general")

    LAST_WARMUP_KEY = "last_cache_warmup"
    FILTER_OPTIONS_KEY = "filter_options_members"

    def __init__(
        self,
        db: Session,
        cache_store: SimpleMemoryCache,
        dialect: DatabaseCompatibilityService,
    ):
        self.db = db
        self.cache_store = cache_store
        self.dialect = dialect

    def remember(
        self,
        key: str,
        ttl: int | None,
        generator: Callable[[], Any],
        tags: Iterable[str] | None = None,
    ) -> Any:
        """Cached ``generator()`` result, retrying untagged when tags are unsupported."""
        if tags:
            try:
                return self.cache_store.remember(key, ttl, generator, tags)
            except CacheTagsNotSupported:
                logger.debug("Cache tags not supported, caching %s without tags", key)
        return self.cache_store.remember(key, ttl, generator)

    def get_cached_stats(self, stats_type: str = "general") -> dict[str, Any]:
        # Unknown types share the general entry
        if stats_type not in self.STATS_TYPES:
            stats_type = "general"
        key = f"optimized_stats_{stats_type}"
        stats = self.remember(
            key,
            self.CACHE_DURATIONS["stats"],
            lambda: self.generate_optimized_stats(stats_type),
            tags=[self.CACHE_TAGS["stats"]],
        )
        if not stats:
            # Failed generations are not kept around for the full TTL
            self.cache_store.forget(key)
        return stats

    def generate_optimized_stats(self, stats_type: str, today: date | None = None) -> dict[str, Any]:
        today = today or date.today()
        try:
            if stats_type == "dashboard":
                return self._dashboard_stats(today.month, today.year)
            if stats_type == "members":
                return self._member_stats(today.month, today.year)
            if stats_type == "financial":
                return self._financial_stats(today.month, today.year)
            return self._general_stats()
        except Exception as e:
            logger.error("Cache optimization stats generation failed: %s", e)
            return {}

    def _in_month(self, column: str) -> str:
        return (
            f"{self.dialect.extract_month(column)} = :month "
            f"AND {self.dialect.extract_year(column)} = :year"
        )

    def _in_year(self, column: str) -> str:
        return f"{self.dialect.extract_year(column)} = :year"

    def _fetch_row(self, sql: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        row = self.db.execute(text(sql), params or {}).mappings().first()
        if row is None:
            return {}
        return {key: _plain(value) for key, value in row.items()}

    def _dashboard_stats(self, month: int, year: int) -> dict[str, Any]:
        sql = f"""
            SELECT
                (SELECT COUNT(*) FROM members) AS total_members,
                (SELECT COUNT(*) FROM members WHERE membership_status = 'active') AS active_members,
                (SELECT COUNT(*) FROM members WHERE {self._in_month('created_at')}) AS new_members_this_month,
                (SELECT COUNT(*) FROM families) AS total_families,
                (SELECT COUNT(*) FROM families WHERE EXISTS (
                    SELECT 1 FROM members
                    WHERE members.family_id = families.id AND members.membership_status = 'active'
                )) AS active_families,
                (SELECT COALESCE(SUM(amount), 0) FROM tithes WHERE {self._in_month('date_given')}) AS tithes_this_month,
                (SELECT COALESCE(SUM(amount), 0) FROM tithes WHERE {self._in_year('date_given')}) AS tithes_this_year,
                (SELECT COUNT(*) FROM activities WHERE status IN ('planned', 'active')) AS upcoming_activities,
                (SELECT COUNT(*) FROM sacraments WHERE {self._in_month('sacrament_date')}) AS sacraments_this_month
        """
        return self._fetch_row(sql, {"month": month, "year": year})

    def _member_stats(self, month: int, year: int) -> dict[str, Any]:
        sql = f"""
            SELECT
                COUNT(*) AS total_members,
                SUM(CASE WHEN membership_status = 'active' THEN 1 ELSE 0 END) AS active_members,
                SUM(CASE WHEN membership_status = 'inactive' THEN 1 ELSE 0 END) AS inactive_members,
                SUM(CASE WHEN membership_status = 'transferred' THEN 1 ELSE 0 END) AS transferred_members,
                SUM(CASE WHEN membership_status = 'deceased' THEN 1 ELSE 0 END) AS deceased_members,
                SUM(CASE WHEN {self._in_month('created_at')} THEN 1 ELSE 0 END) AS new_this_month,
                SUM(CASE WHEN LOWER(gender) = 'male' THEN 1 ELSE 0 END) AS male_count,
                SUM(CASE WHEN LOWER(gender) = 'female' THEN 1 ELSE 0 END) AS female_count
            FROM members
        """
        return self._fetch_row(sql, {"month": month, "year": year})

    def _financial_stats(self, month: int, year: int) -> dict[str, Any]:
        in_month = self._in_month("date_given")
        sql = f"""
            SELECT
                COALESCE(SUM(CASE WHEN {in_month} THEN amount END), 0) AS total_this_month,
                COALESCE(SUM(CASE WHEN {self._in_year('date_given')} THEN amount END), 0) AS total_this_year,
                COALESCE(AVG(CASE WHEN {in_month} THEN amount END), 0) AS avg_this_month,
                COUNT(DISTINCT CASE WHEN {in_month} THEN member_id END) AS contributors_this_month
            FROM tithes
        """
        stats = self._fetch_row(sql, {"month": month, "year": year})
        for key in ("total_this_month", "total_this_year", "avg_this_month"):
            if key in stats:
                stats[key] = round(float(stats[key]), 2)
        return stats

    def _general_stats(self) -> dict[str, Any]:
        sql = """
            SELECT
                (SELECT COUNT(*) FROM members) AS total_members,
                (SELECT COUNT(*) FROM families) AS total_families,
                (SELECT COUNT(*) FROM sacraments) AS total_sacraments,
                (SELECT COUNT(*) FROM activities) AS total_activities,
                (SELECT COALESCE(SUM(amount), 0) FROM tithes) AS total_tithes
        """
        return self._fetch_row(sql)

    def clear_cache(self, tags: Iterable[str] | None = None) -> None:
        """Flush entries with the given tags, or everything when no tags are given."""
        tag_list = list(tags or [])
        if not tag_list:
            self.cache_store.flush()
            return

        try:
            for tag in tag_list:
                if tag in self.CACHE_TAGS:
                    self.cache_store.flush_tags([self.CACHE_TAGS[tag]])
        except CacheTagsNotSupported:
            logger.info("Cache tags not supported, flushing all cache instead")
            self.cache_store.flush()

    def cache_search_results(
        self,
        query: str,
        search_function: Callable[[], Any],
        duration: int | None = None,
    ) -> Any:
        key = "search_" + hashlib.md5(query.encode("utf-8")).hexdigest()
        if duration is None:
            duration = self.CACHE_DURATIONS["search"]
        return self.remember(key, duration, search_function, tags=[self.CACHE_TAGS["members"]])

    def _filter_options(self) -> dict[str, list[str]]:
        churches = self.db.execute(
            text("SELECT DISTINCT local_church FROM members WHERE local_church IS NOT NULL ORDER BY local_church")
        ).scalars().all()
        groups = self.db.execute(
            text("SELECT DISTINCT church_group FROM members WHERE church_group IS NOT NULL ORDER BY church_group")
        ).scalars().all()
        return {
            "churches": list(churches),
            "groups": list(groups),
            "statuses": list(MEMBERSHIP_STATUSES),
        }

    def get_filter_options(self) -> dict[str, list[str]]:
        return self.remember(
            self.FILTER_OPTIONS_KEY,
            self.CACHE_DURATIONS["filters"],
            self._filter_options,
            tags=[self.CACHE_TAGS["members"]],
        )

    def warmup_cache(self) -> bool:
        """Preload commonly used statistics; returns False when warmup failed."""
        try:
            for stats_type in ("dashboard", "members", "financial"):
                self.get_cached_stats(stats_type)
            self.get_filter_options()
            self.cache_store.put(self.LAST_WARMUP_KEY, datetime.now().isoformat(timespec="seconds"), None)
            logger.info("Cache warmup completed successfully")
            return True
        except Exception as e:
            logger.error("Cache warmup failed: %s", e)
            return False

    def get_cache_stats(self) -> dict[str, Any]:
        return {
            "cache_driver": self.cache_store.backend_name,
            "cache_prefix": self.cache_store.prefix,
            "supports_tags": self.cache_store.supports_tags,
            "entries": len(self.cache_store),
            "last_warmup": self.cache_store.get(self.LAST_WARMUP_KEY, "Never"),
        }

    def invalidate_member_caches(self) -> None:
        """Drop member, statistics and dashboard entries after data changes."""
        self.clear_cache(
            [self.CACHE_TAGS["members"], self.CACHE_TAGS["stats"], self.CACHE_TAGS["dashboard"]]
        )
