"""On-disk cache of built allocation indexes."""

import ipaddress
import json
import logging
import os
import tempfile
import time
from collections import namedtuple
from pathlib import Path

from .errors import CacheCorrupt, CacheWriteError
from .parser import FAMILIES

logger = logging.getLogger(__name__)

# RIRs publish at most once a day, so anything younger is still current.
MAX_AGE = 86400

CACHE_PREFIX = ".rir_allocations_"


class CacheEntry(namedtuple("CacheEntry", ["index", "age", "path"])):
    """A cached index together with its age in seconds."""

    __slots__ = ()

    def is_fresh(self, max_age=MAX_AGE):
        return self.age <= max_age


class CacheStore:
    """Interface for persisting one allocation index per registry."""

    def load(self, registry):
        """Return the CacheEntry for ``registry``, or None if nothing is stored.

        Raises:
            CacheCorrupt: An entry exists but cannot be deserialized.
        """
        raise NotImplementedError

    def save(self, registry, index):
        """Persist ``index`` as the entry for ``registry``.

        Raises:
            CacheWriteError: The entry could not be written.
        """
        raise NotImplementedError


def _validate_index(data):
    """Check that decoded JSON has the shape of an allocation index."""
    if not isinstance(data, dict) or set(data) != set(FAMILIES):
        raise ValueError("expected exactly the keys " + ", ".join(FAMILIES))

    for family, countries in data.items():
        if not isinstance(countries, dict):
            raise ValueError(f"{family} is not a mapping of countries")
        for cc, cidrs in countries.items():
            if not isinstance(cidrs, list) or not all(
                isinstance(cidr, str) for cidr in cidrs
            ):
                raise ValueError(f"{family}/{cc} is not a list of prefixes")
            for cidr in cidrs:
                network = ipaddress.ip_network(cidr, strict=False)
                if f"ipv{network.version}" != family:
                    raise ValueError(f"{cidr} is not an {family} prefix")

    return data


class FileCacheStore(CacheStore):
    """Stores each registry's index as a private JSON file."""

    def __init__(self, cache_dir=None, clock=time.time):
        """Initialize the file cache.

        Args:
            cache_dir: Directory holding the cache files. Defaults to the
                system temporary directory.
            clock: Callable returning the current time in epoch seconds.
        """
        if cache_dir is None:
            cache_dir = tempfile.gettempdir()

        self.cache_dir = Path(cache_dir)
        self.clock = clock

    def path_for(self, registry):
        return self.cache_dir / f"{CACHE_PREFIX}{registry}.json"

    def age(self, registry):
        """Seconds since the entry for ``registry`` was written, or None."""
        try:
            mtime = self.path_for(registry).stat().st_mtime
        except FileNotFoundError:
            return None
        return max(0.0, self.clock() - mtime)

    def load(self, registry):
        cachefile = self.path_for(registry)
        age = self.age(registry)
        if age is None:
            return None

        logger.debug("Loading %s data from cache file %s", registry, cachefile)
        try:
            with open(cachefile, encoding="utf-8") as f:
                index = _validate_index(json.load(f))
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as e:
            raise CacheCorrupt(
                f"Unable to load cache file {cachefile}: {type(e).__name__}: {e}"
            ) from e

        return CacheEntry(index=index, age=age, path=cachefile)

    def save(self, registry, index):
        cachefile = self.path_for(registry)
        logger.debug("Writing %s data to cache file %s", registry, cachefile)

        tmp_path = None
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            # mkstemp creates the file 0600 in the target directory, so the
            # final rename stays on one filesystem.
            fd, tmp_path = tempfile.mkstemp(
                prefix=cachefile.name + ".", suffix=".tmp", dir=self.cache_dir
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(index, f)
            os.chmod(tmp_path, 0o600)
            os.replace(tmp_path, cachefile)
        except OSError as e:
            if tmp_path is not None and os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise CacheWriteError(
                f"Unable to write cache file {cachefile}: {type(e).__name__}: {e}"
            ) from e

        return cachefile
