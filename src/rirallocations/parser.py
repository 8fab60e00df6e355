"""Parser for RIR delegated files."""

import ipaddress
import re
from collections import namedtuple

from .errors import InvalidRecordError

AllocationRecord = namedtuple("AllocationRecord", ["country", "family", "cidr"])

FAMILIES = ("ipv4", "ipv6")

# apnic|AU|ipv4|1.0.0.0|256|20110811|assigned
IPV4_LINE = re.compile(r"^\w*\|([A-Za-z]{2})\|ipv4\|([0-9.]*)\|([0-9]+)\|")
# apnic|JP|ipv6|2001:200::|35|19990813|allocated
IPV6_LINE = re.compile(r"^\w*\|([A-Za-z]{2})\|ipv6\|([0-9A-Fa-f:]*)\|([0-9]+)\|")

# Host counts only map to a prefix when they are an exact power of two,
# from a /8 (2**24 hosts) down to a single address.
IPV4_PREFIX_BY_COUNT = {2**bits: 32 - bits for bits in range(0, 25)}


class RIRParser:
    """Parser for single lines of an RIR delegated file."""

    def _to_int(self, start, value):
        try:
            return int(value)
        except ValueError as exc:
            raise InvalidRecordError(
                f"Unusable size field for {start}: {value[:20]}"
            ) from exc

    def _ipv4_record(self, cc, start, value):
        """Build an IPv4 record from a start address and host count."""
        count = self._to_int(start, value)
        prefix_len = IPV4_PREFIX_BY_COUNT.get(count)
        if prefix_len is None:
            raise InvalidRecordError(
                f"Unable to determine CIDR of {start} with {count} hosts"
            )

        try:
            address = ipaddress.IPv4Address(start)
        except ValueError as exc:
            raise InvalidRecordError(f"IPv4 address {start} is invalid") from exc

        return AllocationRecord(cc.upper(), "ipv4", f"{address}/{prefix_len}")

    def _ipv6_record(self, cc, start, value):
        """Build an IPv6 record from a start address and prefix length."""
        prefix_len = self._to_int(start, value)
        if not 0 < prefix_len < 128:
            raise InvalidRecordError(
                f"IPv6 prefix length {start}/{value} is out of range"
            )

        try:
            address = ipaddress.IPv6Address(start)
        except ValueError as exc:
            raise InvalidRecordError(f"IPv6 address {start} is invalid") from exc

        return AllocationRecord(cc.upper(), "ipv6", f"{address}/{prefix_len}")

    def parse_line(self, line):
        """Parse a single line from an RIR file.

        Args:
            line: One line of a delegation file, with or without its newline.

        Returns:
            AllocationRecord, or None when the line is not an address record.

        Raises:
            InvalidRecordError: The line looks like an address record but its
                address, host count or prefix length is unusable.
        """
        matches = IPV4_LINE.match(line)
        if matches:
            return self._ipv4_record(*matches.groups())

        matches = IPV6_LINE.match(line)
        if matches:
            return self._ipv6_record(*matches.groups())

        return None


_PARSER = RIRParser()


def parse_record(line):
    """Return the record described by ``line``, or None if there is none."""
    try:
        return _PARSER.parse_line(line)
    except InvalidRecordError:
        return None
