"""
Badge catalog loading.

Purpose
-------
Turn an externally supplied ``{"badges": [...]}`` document into an ordered,
immutable, id-indexed `BadgeCatalog`.

Responsibilities
----------------
- Fetch the document from a file (`FileCatalogSource`) or over HTTP
  (`HttpCatalogSource`, aiohttp)
- Validate entries one by one; skip malformed ones with a warning
- Never fail the session: `load_catalog` degrades to the single default
  badge when the source is unusable

Non-Responsibilities
--------------------
- Ownership, selection and pricing (BadgeService)
- Catalog content (opaque external data)
"""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional, Protocol

import aiohttp

from clicker.core.logging.logger import get_logger
from clicker.domain.models.badge import DEFAULT_BADGE, Badge
from clicker.domain.models.base import DomainValidationError
from clicker.modules.shared.exceptions import CatalogUnavailableError

logger = get_logger(__name__)


# ============================================================================
# CATALOG
# ============================================================================


@dataclass(frozen=True)
class BadgeCatalog:
    """Ordered badge list with O(1) lookup by id."""

    badges: tuple[Badge, ...] = ()
    is_fallback: bool = False
    _index: Dict[str, Badge] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        index: Dict[str, Badge] = {}
        for badge in self.badges:
            index.setdefault(badge.id, badge)
        object.__setattr__(self, "_index", index)

    @classmethod
    def from_badges(cls, badges: Iterable[Badge], is_fallback: bool = False) -> BadgeCatalog:
        """Build a catalog; later duplicates of an id are dropped."""
        seen: set[str] = set()
        unique: List[Badge] = []
        for badge in badges:
            if badge.id in seen:
                logger.warning("Duplicate badge id in catalog", extra={"badge_id": badge.id})
                continue
            seen.add(badge.id)
            unique.append(badge)
        return cls(badges=tuple(unique), is_fallback=is_fallback)

    @classmethod
    def fallback(cls) -> BadgeCatalog:
        """Single-entry catalog holding the default badge."""
        return cls(badges=(DEFAULT_BADGE,), is_fallback=True)

    def get(self, badge_id: str) -> Optional[Badge]:
        return self._index.get(badge_id)

    def first(self) -> Optional[Badge]:
        return self.badges[0] if self.badges else None

    def __contains__(self, badge_id: object) -> bool:
        return badge_id in self._index

    def __iter__(self) -> Iterator[Badge]:
        return iter(self.badges)

    def __len__(self) -> int:
        return len(self.badges)


def parse_catalog(document: Any, source: str = "<memory>") -> BadgeCatalog:
    """
    Validate a decoded catalog document.

    Raises
    ------
    CatalogUnavailableError
        If the document is not an object with a ``badges`` list.
    """
    if not isinstance(document, dict) or not isinstance(document.get("badges"), list):
        raise CatalogUnavailableError(source, "document has no 'badges' list")

    badges: List[Badge] = []
    for position, entry in enumerate(document["badges"]):
        try:
            badges.append(Badge.from_dict(entry))
        except DomainValidationError as exc:
            logger.warning(
                "Skipping invalid catalog entry",
                extra={"source": source, "position": position, "error": str(exc)},
            )

    return BadgeCatalog.from_badges(badges)


# ============================================================================
# SOURCES
# ============================================================================


class CatalogSource(Protocol):
    description: str

    async def fetch(self) -> Any:
        """Return the decoded JSON document or raise CatalogUnavailableError."""
        ...


class FileCatalogSource:
    """Catalog read from a JSON file on disk."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        self.description = str(self.path)

    def _read(self) -> Any:
        with self.path.open("r", encoding="utf-8") as handle:
            return json.load(handle)

    async def fetch(self) -> Any:
        try:
            return await asyncio.to_thread(self._read)
        except FileNotFoundError:
            raise CatalogUnavailableError(self.description, "file not found") from None
        except (OSError, ValueError, RecursionError) as exc:
            raise CatalogUnavailableError(self.description, str(exc)) from exc


class HttpCatalogSource:
    """Catalog fetched with a single GET request."""

    def __init__(
        self,
        url: str,
        timeout_seconds: float = 10,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        self.url = url
        self.timeout_seconds = timeout_seconds
        self.description = url
        self._session = session

    async def _get(self, session: aiohttp.ClientSession) -> Any:
        async with asyncio.timeout(self.timeout_seconds):
            async with session.get(self.url) as response:
                if response.status != 200:
                    raise CatalogUnavailableError(self.url, f"HTTP {response.status}")
                return await response.json(content_type=None)

    async def fetch(self) -> Any:
        try:
            if self._session is not None:
                return await self._get(self._session)
            async with aiohttp.ClientSession() as session:
                return await self._get(session)
        except CatalogUnavailableError:
            raise
        except TimeoutError:
            raise CatalogUnavailableError(self.url, "request timed out") from None
        except (aiohttp.ClientError, ValueError, RecursionError) as exc:
            raise CatalogUnavailableError(self.url, str(exc)) from exc


class StaticCatalogSource:
    """In-memory document; used by tests and embedding callers."""

    def __init__(self, document: Any, description: str = "<static>") -> None:
        self.document = document
        self.description = description

    async def fetch(self) -> Any:
        return self.document


def build_catalog_source(url: str = "", path: Path | str | None = None, timeout_seconds: float = 10) -> CatalogSource:
    """HTTP when a URL is configured, else the catalog file."""
    if url:
        return HttpCatalogSource(url, timeout_seconds=timeout_seconds)
    if path is None:
        raise ValueError("either url or path is required")
    return FileCatalogSource(path)


async def load_catalog(source: CatalogSource) -> BadgeCatalog:
    """
    Fetch and parse a catalog, never raising.

    Any `CatalogUnavailableError`, or any other failure of a source, is
    logged and replaced by `BadgeCatalog.fallback()`. A document whose entries are all invalid also
    falls back, so the game always has at least one badge.
    """
    try:
        document = await source.fetch()
        catalog = parse_catalog(document, source.description)
    except CatalogUnavailableError as exc:
        logger.warning(
            "Badge catalog unavailable; using fallback badge",
            extra={"source": source.description, "error": exc.reason},
        )
        return BadgeCatalog.fallback()
    except Exception as exc:
        logger.error(
            "Badge catalog load failed unexpectedly; using fallback badge",
            extra={"source": source.description, "error": str(exc), "error_type": type(exc).__name__},
            exc_info=True,
        )
        return BadgeCatalog.fallback()

    if not len(catalog):
        logger.warning(
            "Badge catalog is empty; using fallback badge",
            extra={"source": source.description},
        )
        return BadgeCatalog.fallback()

    logger.info(
        "Badge catalog loaded",
        extra={"source": source.description, "badge_count": len(catalog)},
    )
    return catalog
