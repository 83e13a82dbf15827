"""Upstream sources and their listing (index page) extractors.

primary — go-astronomy.com, one ``constellations.php?Name=…`` link per entry
backup  — NOIRLab education pages, one ``/public/education/constellations/<slug>/`` link per entry
"""

from __future__ import annotations

import html
import logging
import re
from dataclasses import dataclass
from urllib.parse import urljoin

from constellation_service.config import BACKUP_INDEX_URL, MAX_CATALOGUE_SIZE, PRIMARY_INDEX_URL
from constellation_service.fallbacks import slugify
from constellation_service.models import SourceKind

logger = logging.getLogger(__name__)

MIN_NAME_LENGTH = 3


@dataclass(frozen=True)
class ListingLink:
    name: str
    url: str


@dataclass(frozen=True)
class SourceProfile:
    kind: SourceKind
    label: str
    index_url: str
    default_culture: str


SOURCES: dict[SourceKind, SourceProfile] = {
    SourceKind.PRIMARY: SourceProfile(SourceKind.PRIMARY, "go-astronomy", PRIMARY_INDEX_URL, "Ancient"),
    SourceKind.BACKUP: SourceProfile(SourceKind.BACKUP, "noirlab", BACKUP_INDEX_URL, "Various"),
}


@dataclass(frozen=True)
class ListingExtractor:
    """Scans an index page for ``(name, href)`` anchors.

    ``pattern`` must capture the href in group 1 and the link text in group 2.
    Relative hrefs are resolved against the index page URL.
    """

    source: SourceKind
    pattern: re.Pattern

    def extract_links(self, body: str, index_url: str, limit: int = MAX_CATALOGUE_SIZE) -> list[ListingLink]:
        links: list[ListingLink] = []
        seen: set[str] = set()
        for match in self.pattern.finditer(body):
            name = " ".join(html.unescape(match.group(2)).split())
            if len(name) < MIN_NAME_LENGTH or not slugify(name):
                continue
            url = urljoin(index_url, html.unescape(match.group(1)).strip())
            if url in seen:
                continue
            seen.add(url)
            links.append(ListingLink(name=name, url=url))
            if len(links) >= limit:
                break
        return links


EXTRACTORS: dict[SourceKind, ListingExtractor] = {
    SourceKind.PRIMARY: ListingExtractor(
        SourceKind.PRIMARY,
        re.compile(r'<a\s+href="(constellations\.php\?Name=[^"]+)"[^>]*>([^<]+)</a>', re.IGNORECASE),
    ),
    SourceKind.BACKUP: ListingExtractor(
        SourceKind.BACKUP,
        re.compile(r'<a[^>]+href="(/public/education/constellations/[^"/]+/)"[^>]*>([^<]+)</a>', re.IGNORECASE),
    ),
}


def extract_links(
    body: str,
    source: SourceKind,
    index_url: str | None = None,
    limit: int = MAX_CATALOGUE_SIZE,
) -> list[ListingLink]:
    """Listing links for ``source``; an empty list when nothing matches."""
    index_url = index_url or SOURCES[source].index_url
    links = EXTRACTORS[source].extract_links(body, index_url, limit)
    logger.info("Found %d constellation links from %s", len(links), SOURCES[source].label)
    return links
