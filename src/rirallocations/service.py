"""Answers allocation queries from cached or freshly fetched RIR data."""

import logging
import re

from .builder import IndexBuilder
from .cache import MAX_AGE, FileCacheStore
from .data_fetcher import RIR_SOURCES, DataFetcher
from .errors import CacheWriteError, FeedParseError, FetchError, InvalidArgument
from .parser import FAMILIES

logger = logging.getLogger(__name__)

COUNTRY_CODE = re.compile(r"[A-Z]{2}")


def normalize_registry(registry):
    if not isinstance(registry, str) or registry.lower() not in RIR_SOURCES:
        raise InvalidArgument(
            "You must select an RIR to return ranges for, one of: "
            + ", ".join(RIR_SOURCES)
        )
    return registry.lower()


def normalize_family(family):
    if not isinstance(family, str) or family.lower() not in FAMILIES:
        raise InvalidArgument("You must select either ipv4 or ipv6")
    return family.lower()


def normalize_country(country):
    if country is None:
        return None
    if not isinstance(country, str) or not COUNTRY_CODE.fullmatch(country.upper()):
        raise InvalidArgument(
            f"Country must be a two letter code such as NZ, got {country!r}"
        )
    return country.upper()


class AllocationService:
    """Serves RIR allocations, refreshing the cache at most once a day."""

    def __init__(self, fetcher=None, builder=None, cache_store=None,
                 max_age=MAX_AGE):
        """Initialize the service.

        Args:
            fetcher: DataFetcher used to download feeds.
            builder: IndexBuilder used to parse them.
            cache_store: CacheStore holding one index per registry.
            max_age: Seconds a cached index is considered fresh.
        """
        self.fetcher = fetcher if fetcher is not None else DataFetcher()
        self.builder = builder if builder is not None else IndexBuilder()
        self.cache_store = cache_store if cache_store is not None else FileCacheStore()
        self.max_age = max_age

    def _download_index(self, registry):
        body = self.fetcher.fetch_registry(registry)
        return self.builder.build(body)

    def _store(self, registry, index):
        try:
            self.cache_store.save(registry, index)
        except CacheWriteError as e:
            logger.warning("Serving %s data without caching it: %s", registry, e)

    def refresh(self, registry):
        """Download, parse and cache the index for ``registry``.

        Raises:
            FetchError: The feed could not be downloaded.
            FeedParseError: The feed could not be parsed.
        """
        registry = normalize_registry(registry)
        index = self._download_index(registry)
        self._store(registry, index)
        return index

    def get_index(self, registry):
        """Return the current index for ``registry``.

        A fresh cache entry is used as is. Otherwise the feed is downloaded;
        if that fails, a stale entry is served in its place.
        """
        registry = normalize_registry(registry)
        logger.debug("Processing data for RIR %s", registry)

        entry = self.cache_store.load(registry)
        if entry is not None and entry.is_fresh(self.max_age):
            return entry.index

        try:
            index = self._download_index(registry)
        except (FetchError, FeedParseError) as e:
            if entry is None:
                raise
            logger.warning(
                "Unable to refresh %s data, serving cache from %.0f seconds ago: %s",
                registry,
                entry.age,
                e,
            )
            return entry.index

        self._store(registry, index)
        return index

    def query(self, registry, family, country=None):
        """Return the blocks a registry has allocated.

        Args:
            registry: One of afrinic, apnic, arin, lacnic, ripe-ncc.
            family: ipv4 or ipv6.
            country: Optional two letter country code.

        Returns:
            dict mapping country code to a list of CIDRs when ``country`` is
            omitted, otherwise the list of CIDRs for that country.
        """
        registry = normalize_registry(registry)
        family = normalize_family(family)
        country = normalize_country(country)

        allocations = self.get_index(registry)[family]
        logger.debug("RIR data processed, returning results")

        if country is None:
            return allocations
        return list(allocations.get(country, []))


_GLOBAL_SERVICE = None


def get_service():
    """Get or create global service instance."""
    global _GLOBAL_SERVICE  # pylint: disable=global-statement
    if _GLOBAL_SERVICE is None:
        _GLOBAL_SERVICE = AllocationService()
    return _GLOBAL_SERVICE


def rir_allocations(registry, family, country=None):
    """Main query function for both IPv4 and IPv6."""
    return get_service().query(registry, family, country)
