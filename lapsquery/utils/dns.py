# Domain controller location for lapsquery
#
# When an LDAP path names no server, a DC is picked the way the Windows DC
# locator does it: SRV records under _ldap._tcp.dc._msdcs.<domain>, ordered
# by priority and weight, and the first one accepting TCP connections on an
# LDAP port wins.

import socket
from dataclasses import dataclass
from typing import List, Optional

import dns.exception
import dns.resolver

from .helpers import is_ipv4
from .logging import debug, warn

# Default timeout for DNS operations (seconds)
DEFAULT_DNS_TIMEOUT = 5

# Default timeout for DC discovery as a whole (seconds)
DEFAULT_LDAP_TIMEOUT = 10

# Probed in this order, matching get_ldap_connection (LDAPS first)
LDAP_PORTS = (636, 389)

# Upper bound for a single port probe (seconds)
PORT_PROBE_TIMEOUT = 3

DC_SRV_RECORD = "_ldap._tcp.dc._msdcs.{domain}"


@dataclass(frozen=True)
class SrvTarget:
    """One SRV answer for the DC locator record"""

    host: str
    port: int
    priority: int
    weight: int


@dataclass(frozen=True)
class DomainController:
    """A located DC: host name (Kerberos SPN) and the address to connect to"""

    host: str
    address: str


class DomainControllerLocator:
    """
    Find a reachable domain controller for a domain.

    Args:
        nameserver: DNS server to query instead of the system configuration
        use_tcp: Send DNS queries over TCP (SOCKS proxies, proxychains)
        timeout: DNS lifetime in seconds; port probes use at most PORT_PROBE_TIMEOUT
    """

    def __init__(
        self,
        nameserver: Optional[str] = None,
        use_tcp: bool = False,
        timeout: int = DEFAULT_DNS_TIMEOUT,
    ):
        self.nameserver = nameserver
        self.use_tcp = use_tcp
        self.timeout = timeout

        self._resolver = dns.resolver.Resolver(configure=not nameserver)
        if nameserver:
            self._resolver.nameservers = [nameserver]
        self._resolver.timeout = timeout
        self._resolver.lifetime = timeout

    def srv_targets(self, domain: str) -> List[SrvTarget]:
        """
        Query the DC locator SRV record.

        Returns:
            Targets ordered by ascending priority, then descending weight
            (empty if the lookup fails)
        """
        record = DC_SRV_RECORD.format(domain=domain)
        debug(f"DNS: Querying SRV record {record}")

        try:
            answers = self._resolver.resolve(record, "SRV", tcp=self.use_tcp)
        except dns.exception.DNSException as e:
            debug(f"DNS: SRV lookup failed: {e}")
            return []

        targets = [
            SrvTarget(str(rdata.target).rstrip("."), rdata.port, rdata.priority, rdata.weight)
            for rdata in answers
        ]
        targets = [t for t in targets if t.host]
        targets.sort(key=lambda t: (t.priority, -t.weight))

        for t in targets:
            debug(f"DNS: Found DC via SRV: {t.host} (priority={t.priority}, weight={t.weight})")
        return targets

    def resolve(self, hostname: str) -> Optional[str]:
        """Resolve a host name to an IPv4 address (None on failure)."""
        if is_ipv4(hostname):
            return hostname

        try:
            if self.nameserver:
                answers = self._resolver.resolve(hostname, "A", tcp=self.use_tcp)
                return str(answers[0])
            return socket.gethostbyname(hostname)
        except (dns.exception.DNSException, OSError) as e:
            debug(f"DNS: Could not resolve {hostname}: {e}")
            return None

    def is_reachable(self, address: str, port: int) -> bool:
        """Check whether address accepts TCP connections on port."""
        try:
            with socket.create_connection((address, port), timeout=min(self.timeout, PORT_PROBE_TIMEOUT)):
                return True
        except OSError:
            return False

    def candidates(self, domain: str) -> List[str]:
        """DC host names to try, in order."""
        hosts = [t.host for t in self.srv_targets(domain)]
        if hosts:
            debug(f"DNS: Discovered {len(hosts)} DCs via SRV records")
            return hosts

        # AD-integrated DNS points the domain's own A records at its DCs
        debug(f"DNS: Falling back to A record lookup for {domain}")
        return [domain]

    def locate(self, domain: str) -> Optional[DomainController]:
        """
        Pick the first candidate DC answering on an LDAP port.

        When none answers, the first resolvable candidate is returned anyway
        so the LDAP connection can report the actual error.

        Returns:
            DomainController, or None if no candidate resolves
        """
        fallback = None

        for host in self.candidates(domain):
            address = self.resolve(host)
            if not address:
                continue

            dc = DomainController(host=host, address=address)
            fallback = fallback or dc

            for port in LDAP_PORTS:
                if self.is_reachable(address, port):
                    debug(f"DNS: DC {host} ({address}) is reachable on port {port}")
                    return dc
            debug(f"DNS: DC {host} ({address}) not reachable on LDAP ports")

        if fallback:
            warn(f"No DC responded on LDAP ports, trying {fallback.host} anyway")
        else:
            warn(f"Could not discover any DCs for domain {domain}")
        return fallback
