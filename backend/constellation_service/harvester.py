"""Catalogue harvest — batch orchestration, source fallback and caching.

A catalogue request is served from the TTL cache when possible. On a miss the
primary source is harvested; if that yields nothing the backup source is
tried. Only a non-empty result is cached, so a failed harvest is retried on
the next request.

Concurrency: a valid cached catalogue is returned without waiting. Misses
are single-flight behind an asyncio.Lock, and a waiter re-checks the cache
once it holds the lock, so concurrent requests share one harvest.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable, Protocol

from constellation_service.cache import Clock, TTLCache
from constellation_service.config import Settings, get_settings
from constellation_service.detail_parser import parse
from constellation_service.fallbacks import assemble_entry, slugify
from constellation_service.fetcher import BoundedFetcher, UpstreamUnavailable
from constellation_service.models import CatalogueEntry, SourceKind
from constellation_service.sources import SOURCES, ListingLink, extract_links

logger = logging.getLogger(__name__)

CATALOGUE_KEY = "scraped-constellations"

SOURCE_ORDER = (SourceKind.PRIMARY, SourceKind.BACKUP)


class PageFetcher(Protocol):
    async def fetch(self, url: str) -> str: ...


Sleep = Callable[[float], Awaitable[None]]


def record_key(entry_id: str, source: SourceKind) -> str:
    return f"constellation-{entry_id}-{source.value}"


class BatchOrchestrator:
    """Fetch + parse listing links in fixed-size batches.

    Within a batch every link gets its own task, bounded by a semaphore of
    ``concurrency`` permits; between batches the orchestrator pauses for
    ``batch_pause_s``. A failing link is logged and dropped. Output keeps
    the order in which links were discovered.
    """

    def __init__(
        self,
        fetcher: PageFetcher,
        batch_size: int = 10,
        batch_pause_s: float = 0.3,
        concurrency: int | None = None,
        record_cache: TTLCache[str, CatalogueEntry] | None = None,
        sleep: Sleep = asyncio.sleep,
    ):
        self.fetcher = fetcher
        self.batch_size = max(1, batch_size)
        self.batch_pause_s = batch_pause_s
        self.concurrency = max(1, concurrency or self.batch_size)
        self.record_cache = record_cache
        self._sleep = sleep

    async def build_catalogue(self, links: list[ListingLink], source: SourceKind) -> list[CatalogueEntry]:
        label = SOURCES[source].label
        semaphore = asyncio.Semaphore(self.concurrency)
        entries: list[CatalogueEntry] = []
        dropped = 0

        for start in range(0, len(links), self.batch_size):
            batch = links[start:start + self.batch_size]
            logger.info(
                "Processing %s batch %d: %s",
                label, start // self.batch_size + 1, ", ".join(link.name for link in batch),
            )
            results = await asyncio.gather(*(self._guarded(link, source, semaphore) for link in batch))
            for entry in results:
                if entry is None:
                    dropped += 1
                else:
                    entries.append(entry)

            if start + self.batch_size < len(links) and self.batch_pause_s > 0:
                await self._sleep(self.batch_pause_s)

        logger.info("Built %d %s entries (%d dropped)", len(entries), label, dropped)
        return entries

    async def _guarded(
        self, link: ListingLink, source: SourceKind, semaphore: asyncio.Semaphore
    ) -> CatalogueEntry | None:
        async with semaphore:
            try:
                return await self.build_entry(link, source)
            except UpstreamUnavailable as exc:
                logger.warning("Dropping %s: %s", link.name, exc)
            except Exception:
                logger.exception("Failed to build %s from %s", link.name, SOURCES[source].label)
        return None

    async def build_entry(self, link: ListingLink, source: SourceKind) -> CatalogueEntry:
        key = record_key(slugify(link.name), source)
        if self.record_cache is not None:
            cached = self.record_cache.get(key)
            if cached is not None:
                return cached

        body = await self.fetcher.fetch(link.url)
        parsed = parse(body, link.name, source, page_url=link.url)
        entry = assemble_entry(link.name, parsed, SOURCES[source].default_culture)

        if self.record_cache is not None:
            self.record_cache.put(key, entry)
        return entry


class ConstellationCatalogue:
    """Harvested constellation catalogue with a 30-day cache."""

    def __init__(
        self,
        settings: Settings | None = None,
        fetcher: PageFetcher | None = None,
        clock: Clock = time.time,
        sleep: Sleep = asyncio.sleep,
    ):
        self.settings = settings or get_settings()
        self.fetcher = fetcher or BoundedFetcher(
            timeout_s=self.settings.fetch_timeout_s,
            retries=self.settings.fetch_retries,
            backoff_s=self.settings.fetch_backoff_s,
        )
        self.catalogue_cache: TTLCache[str, list[CatalogueEntry]] = TTLCache(
            self.settings.catalogue_ttl_s, clock=clock, name="catalogue"
        )
        self.record_cache: TTLCache[str, CatalogueEntry] = TTLCache(
            self.settings.record_ttl_s, clock=clock, name="records"
        )
        self.orchestrator = BatchOrchestrator(
            self.fetcher,
            batch_size=self.settings.batch_size,
            batch_pause_s=self.settings.batch_pause_s,
            record_cache=self.record_cache,
            sleep=sleep,
        )
        self._harvest_lock = asyncio.Lock()

    def index_url(self, source: SourceKind) -> str:
        if source is SourceKind.PRIMARY:
            return self.settings.primary_url
        return self.settings.backup_url

    async def get_catalogue(self) -> list[CatalogueEntry]:
        """Cached catalogue, harvesting on a miss. Empty list if every source failed."""
        cached = self.catalogue_cache.get(CATALOGUE_KEY)
        if cached is not None:
            logger.debug(
                "Using cached constellation data (%d constellations, %.0fs old)",
                len(cached), self.catalogue_cache.age(CATALOGUE_KEY) or 0.0,
            )
            return cached

        async with self._harvest_lock:
            cached = self.catalogue_cache.get(CATALOGUE_KEY)
            if cached is not None:
                return cached

            entries = await self._harvest()
            if entries:
                self.catalogue_cache.put(CATALOGUE_KEY, entries)
                logger.info(
                    "Successfully harvested %d constellations (%d records cached)",
                    len(entries), len(self.record_cache),
                )
            else:
                logger.warning("All sources failed - no constellation data available")
            return entries

    async def get_entry(self, entry_id: str) -> CatalogueEntry | None:
        for source in SOURCE_ORDER:
            cached = self.record_cache.get(record_key(entry_id, source))
            if cached is not None:
                return cached
        for entry in await self.get_catalogue():
            if entry.id == entry_id:
                return entry
        return None

    async def _harvest(self) -> list[CatalogueEntry]:
        for source in SOURCE_ORDER:
            try:
                entries = await self.harvest_source(source)
            except Exception:
                logger.exception("Harvest from %s failed", SOURCES[source].label)
                entries = []
            if entries:
                return entries
            if source is SourceKind.PRIMARY:
                logger.info("Primary source yielded nothing, trying backup...")
        return []

    async def harvest_source(self, source: SourceKind) -> list[CatalogueEntry]:
        index_url = self.index_url(source)
        label = SOURCES[source].label
        logger.info("Fetching constellation list from %s...", label)
        try:
            body = await self.fetcher.fetch(index_url)
        except UpstreamUnavailable as exc:
            logger.warning("Index page of %s unavailable: %s", label, exc)
            return []

        links = extract_links(body, source, index_url=index_url, limit=self.settings.max_entries)
        if not links:
            return []
        return await self.orchestrator.build_catalogue(links, source)

    async def close(self) -> None:
        close = getattr(self.fetcher, "close", None)
        if close is not None:
            await close()


# Singleton
_service: ConstellationCatalogue | None = None


def get_catalogue_service() -> ConstellationCatalogue:
    global _service
    if _service is None:
        _service = ConstellationCatalogue()
    return _service


async def shutdown_catalogue_service() -> None:
    global _service
    if _service is not None:
        await _service.close()
        _service = None
