"""Data fetcher for downloading RIR delegated files."""

import logging

import requests
from tqdm import tqdm

from .errors import FetchError, InvalidArgument

logger = logging.getLogger(__name__)

RIR_SOURCES = {
    "afrinic": "http://ftp.afrinic.net/pub/stats/afrinic/delegated-afrinic-latest",
    "apnic": "http://ftp.apnic.net/stats/apnic/delegated-apnic-latest",
    "arin": "http://ftp.arin.net/pub/stats/arin/delegated-arin-extended-latest",
    "lacnic": "http://ftp.lacnic.net/pub/stats/lacnic/delegated-lacnic-latest",
    "ripe-ncc": "http://ftp.ripe.net/pub/stats/ripencc/delegated-ripencc-latest",
}


class DataFetcher:
    """Fetches RIR delegated files over HTTP."""

    MAX_ATTEMPTS = 3
    TIMEOUT = (10, 60)
    CHUNK_SIZE = 8192

    def __init__(self, session=None, max_attempts=None, timeout=None,
                 show_progress=False):
        self.session = session if session is not None else self._create_session()
        self.max_attempts = self.MAX_ATTEMPTS if max_attempts is None else max_attempts
        self.timeout = self.TIMEOUT if timeout is None else timeout
        self.show_progress = show_progress

    def _create_session(self):
        session = requests.Session()
        session.headers["User-Agent"] = "rirallocations"
        return session

    def _download(self, url, description):
        """Download ``url`` into memory, raising on anything but a 200."""
        response = self.session.get(url, stream=True, timeout=self.timeout)
        try:
            if response.status_code != 200:
                raise FetchError(f"Unexpected response code: {response.status_code}")

            try:
                total_size = int(response.headers.get("content-length", 0))
            except (TypeError, ValueError):
                total_size = 0
            body = bytearray()
            with tqdm(
                desc=description,
                total=total_size,
                unit="B",
                unit_scale=True,
                unit_divisor=1024,
                disable=not self.show_progress,
            ) as pbar:
                for chunk in response.iter_content(chunk_size=self.CHUNK_SIZE):
                    if chunk:
                        body.extend(chunk)
                        pbar.update(len(chunk))

            return bytes(body)
        finally:
            response.close()

    def fetch(self, url, description=None):
        """Fetch a delegated file, retrying failed attempts.

        Args:
            url: Feed URL to GET.
            description: Label for the progress bar.

        Returns:
            bytes: The response body.

        Raises:
            FetchError: Every attempt failed.
        """
        desc = description or "Downloading " + url.rsplit("/", 1)[-1]
        last_error = None

        for attempt in range(1, self.max_attempts + 1):
            logger.debug("Downloading %s (attempt %d/%d)", url, attempt,
                         self.max_attempts)
            try:
                return self._download(url, desc)
            except (requests.exceptions.RequestException, FetchError) as e:
                logger.debug("Attempt %d for %s failed: %s", attempt, url, e)
                last_error = e

        raise FetchError(
            f"Unable to fetch {url} after {self.max_attempts} attempts: {last_error}"
        ) from last_error

    def fetch_registry(self, registry):
        """Fetch the delegated file published by ``registry``."""
        url = RIR_SOURCES.get(registry)
        if url is None:
            raise InvalidArgument(f"Unknown registry: {registry}")
        return self.fetch(url, "Downloading " + registry.upper())
