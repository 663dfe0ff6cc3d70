# This file is part of cloud-agent. See LICENSE file for license information.
"""Host lookups against an explicit list of nameservers."""

import ipaddress
import logging

from cloudagent import subp

LOG = logging.getLogger(__name__)

DEFAULT_LOOKUP_TIMEOUT = 1

# dig retries a UDP query this many times before giving up
DIG_TRIES = 3


class DNSLookupError(IOError):
    pass


def is_ip_address(value) -> bool:
    try:
        ipaddress.ip_address(value)
    except ValueError:
        return False
    return True


class DigDNSResolver:
    """Resolve names with dig(1), bypassing the system resolver.

    Nameservers are asked in order and the first usable answer wins.
    """

    def __init__(self, timeout=DEFAULT_LOOKUP_TIMEOUT):
        self.timeout = timeout

    def lookup_host(self, host, nameservers) -> str:
        if host == "localhost":
            return "127.0.0.1"
        if is_ip_address(host):
            return host

        nameservers = list(nameservers)
        if not nameservers:
            raise DNSLookupError("No nameservers given to resolve %s" % host)

        last_error = None
        for nameserver in nameservers:
            try:
                return self._lookup_with_nameserver(host, nameserver)
            except (DNSLookupError, subp.ProcessExecutionError) as e:
                LOG.debug(
                    "Failed to resolve %s with nameserver %s: %s",
                    host,
                    nameserver,
                    e,
                )
                last_error = e
        raise DNSLookupError(
            "Resolving %s with nameservers %s: %s"
            % (host, ", ".join(nameservers), last_error)
        )

    def _lookup_with_nameserver(self, host, nameserver) -> str:
        out, _err = subp.subp(
            [
                "dig",
                "@%s" % nameserver,
                host,
                "+short",
                "+time=%s" % self.timeout,
            ],
            timeout=self.timeout * DIG_TRIES + 1,
        )
        # +short prints CNAME targets before the addresses they point to
        for line in out.splitlines():
            answer = line.strip()
            if is_ip_address(answer):
                LOG.debug(
                    "Resolved %s to %s using nameserver %s",
                    host,
                    answer,
                    nameserver,
                )
                return answer
        raise DNSLookupError(
            "No address for %s from nameserver %s" % (host, nameserver)
        )
