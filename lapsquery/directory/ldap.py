# Live directory client backed by impacket's LDAP implementation.

import contextlib
from typing import List, Optional, Sequence, Tuple

from impacket.ldap import ldap as ldap_impacket
from impacket.ldap import ldapasn1 as ldapasn1_impacket

from ..laps.exceptions import DirectoryLocatorError
from ..utils.dns import DEFAULT_LDAP_TIMEOUT, DomainControllerLocator
from ..utils.helpers import is_ipv4
from ..utils.ldap import domain_from_base_dn, get_ldap_connection, normalize_filter, parse_ldap_path
from ..utils.logging import debug, warn
from .base import Credentials, DirectoryClient, DirectoryConnection, SearchEntry

# LDAP resultCode returned when more entries matched than sizeLimit allows
SIZE_LIMIT_EXCEEDED = 4


def _entry_attributes(entry: ldapasn1_impacket.SearchResultEntry) -> SearchEntry:
    """Flatten an impacket search entry into {lowercased name: [values]}"""
    attrs = {}
    for attr in entry["attributes"]:
        values = [str(value) for value in attr["vals"]]
        if values:
            attrs[str(attr["type"]).lower()] = values
    return attrs


class LdapConnection(DirectoryConnection):
    """A bound impacket LDAP connection and the base DN it searches below."""

    def __init__(self, ldap_conn: ldap_impacket.LDAPConnection, base_dn: str):
        self._conn = ldap_conn
        self.base_dn = base_dn

    def search(
        self,
        ldap_filter: str,
        attributes: Sequence[str],
        size_limit: int = 0,
    ) -> List[SearchEntry]:
        search_filter = normalize_filter(ldap_filter)
        debug(f"LDAP: Searching {self.base_dn} with filter {search_filter}")

        try:
            results = self._conn.search(
                searchBase=self.base_dn,
                searchFilter=search_filter,
                attributes=list(attributes),
                sizeLimit=size_limit,
            )
        except ldap_impacket.LDAPSearchError as e:
            # Hitting the size limit still returns the entries that fit
            if size_limit and e.getErrorCode() == SIZE_LIMIT_EXCEEDED:
                results = e.getAnswers()
            else:
                raise

        entries = []
        for result in results:
            # Skip search references
            if not isinstance(result, ldapasn1_impacket.SearchResultEntry):
                continue
            entries.append(_entry_attributes(result))

        debug(f"LDAP: Search returned {len(entries)} entries")
        return entries[:size_limit] if size_limit else entries

    def close(self) -> None:
        with contextlib.suppress(Exception):
            self._conn.close()


class LdapDirectory(DirectoryClient):
    """
    Directory client for a live Active Directory domain.

    When the LDAP path names no server, a domain controller is located via
    DNS SRV records (_ldap._tcp.dc._msdcs.<domain>).

    Args:
        dc_ip: IP to connect to, overriding DNS resolution of the server name
        nameserver: DNS server for DC discovery and name resolution
        dns_tcp: Force DNS queries over TCP (SOCKS proxies)
        timeout: Timeout for DC discovery port checks, in seconds
    """

    def __init__(
        self,
        dc_ip: Optional[str] = None,
        nameserver: Optional[str] = None,
        dns_tcp: bool = False,
        timeout: int = DEFAULT_LDAP_TIMEOUT,
    ):
        self.dc_ip = dc_ip
        self.nameserver = nameserver
        self.dns_tcp = dns_tcp
        self.timeout = timeout

    def _locate_server(self, domain: str) -> Tuple[str, str]:
        """Return (host, address) of a DC for the domain."""
        if self.dc_ip:
            return self.dc_ip, self.dc_ip

        locator = DomainControllerLocator(nameserver=self.nameserver, use_tcp=self.dns_tcp, timeout=self.timeout)
        dc = locator.locate(domain)
        if not dc:
            raise DirectoryLocatorError(
                f"Could not discover a domain controller for {domain}. "
                "Specify a server name or --dc-ip explicitly."
            )
        debug(f"LDAP: Located DC {dc.host} ({dc.address}) for {domain}")
        return dc.host, dc.address

    def connect(self, ldap_path: str, credentials: Optional[Credentials] = None) -> LdapConnection:
        server, base_dn = parse_ldap_path(ldap_path)
        domain = domain_from_base_dn(base_dn)

        if server:
            host, address = server, self.dc_ip
        else:
            host, address = self._locate_server(domain)

        kerberos = credentials is None or credentials.kerberos
        if kerberos and is_ipv4(host):
            warn(f"LDAP: Kerberos with an IP address ({host}) usually fails; pass the DC hostname instead")

        debug(f"LDAP: Connecting to {host} for {base_dn}")
        ldap_conn = get_ldap_connection(
            host=host,
            base_dn=base_dn,
            domain=domain,
            username=credentials.username if credentials else None,
            password=credentials.password if credentials else None,
            hashes=credentials.hashes if credentials else None,
            kerberos=kerberos,
            dc_ip=address,
        )

        return LdapConnection(ldap_conn, base_dn)
