"""Builds per-country allocation indexes from delegated files."""

import logging

from .errors import FeedParseError, InvalidRecordError
from .parser import FAMILIES, RIRParser

logger = logging.getLogger(__name__)


def empty_index():
    """Return an index with every family present and no countries."""
    return {family: {} for family in FAMILIES}


class IndexBuilder:
    """Turns a delegated file body into ``{family: {country: [cidr, ...]}}``."""

    def __init__(self, parser=None):
        self.parser = parser or RIRParser()

    def build(self, body):
        """Parse a delegated file body into an allocation index.

        Args:
            body: Raw file contents, bytes or str.

        Returns:
            dict: ``{"ipv4": {...}, "ipv6": {...}}`` with CIDR lists kept in
            file order.

        Raises:
            FeedParseError: The body could not be processed at all.
        """
        if isinstance(body, bytes):
            body = body.decode("utf-8", errors="ignore")

        index = empty_index()
        skipped = 0

        try:
            for line_num, line in enumerate(body.splitlines(), 1):
                try:
                    record = self.parser.parse_line(line)
                except InvalidRecordError as e:
                    skipped += 1
                    logger.debug("Skipping line %d: %s", line_num, e)
                    continue

                if record is not None:
                    index[record.family].setdefault(record.country, []).append(
                        record.cidr
                    )
        except (AttributeError, TypeError, ValueError) as e:
            raise FeedParseError(f"Unable to parse delegated file: {e}") from e

        for family in FAMILIES:
            logger.debug(
                "  %s: %d prefixes across %d countries",
                family,
                sum(len(cidrs) for cidrs in index[family].values()),
                len(index[family]),
            )
        if skipped:
            logger.debug("  Skipped %d invalid records", skipped)

        return index
