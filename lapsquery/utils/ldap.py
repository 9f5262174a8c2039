# LDAP utilities for lapsquery
#
# This module provides the LDAP path, DN and filter helpers used by the
# search functions, and the impacket connection setup used by the live
# directory client.

import re
from typing import Optional, Tuple

from impacket.ldap import ldap as ldap_impacket

from .helpers import parse_ntlm_hashes
from .logging import debug

LDAP_PATH_PREFIX = "LDAP://"

# LDAPS (636) first, plain LDAP (389) as fallback
LDAP_SCHEMES = ("ldaps", "ldap")

# ADSI tolerates "((attr=value))"; impacket's filter grammar does not
_REDUNDANT_GROUP = re.compile(r"\(\((?![&|!])([^()]*)\)\)")


def build_base_dn(domain_name: str) -> str:
    """
    Build a base DN from a dotted domain name.

    Examples:
        >>> build_base_dn("example.com")
        'DC=example,DC=com'
    """
    return ",".join(f"DC={part}" for part in domain_name.split("."))


def build_ldap_path(domain_name: str, server_name: Optional[str] = None) -> str:
    """
    Build an LDAP path for a domain, optionally bound to one server.

    Args:
        domain_name: Dotted domain name (e.g., "example.com")
        server_name: Domain controller to query; None or "" uses the domain locator

    Returns:
        Path like "LDAP://dc1.example.com/DC=example,DC=com"

    Examples:
        >>> build_ldap_path("example.com")
        'LDAP://DC=example,DC=com'
        >>> build_ldap_path("example.com", "dc1.example.com")
        'LDAP://dc1.example.com/DC=example,DC=com'
    """
    server_part = f"{server_name}/" if server_name else ""
    return f"{LDAP_PATH_PREFIX}{server_part}{build_base_dn(domain_name)}"


def parse_ldap_path(ldap_path: str) -> Tuple[Optional[str], str]:
    """
    Split an LDAP path into (server, base_dn).

    Raises:
        ValueError: If the path does not start with "LDAP://" or has no DN
    """
    if not ldap_path[: len(LDAP_PATH_PREFIX)].upper() == LDAP_PATH_PREFIX:
        raise ValueError(f"Not an LDAP path: {ldap_path!r}")

    remainder = ldap_path[len(LDAP_PATH_PREFIX):]
    server, sep, base_dn = remainder.partition("/")
    if not sep:
        server, base_dn = "", remainder

    if not base_dn:
        raise ValueError(f"LDAP path has no distinguished name: {ldap_path!r}")

    return server or None, base_dn


def domain_from_base_dn(base_dn: str) -> str:
    """Rebuild the dotted domain name from the DC= components of a DN."""
    parts = [rdn.split("=", 1)[1] for rdn in base_dn.split(",") if rdn.strip().upper().startswith("DC=")]
    return ".".join(parts)


def normalize_filter(ldap_filter: str) -> str:
    """
    Collapse redundant grouping parentheses around simple filter items.

    Examples:
        >>> normalize_filter("(&(objectClass=computer)((name=HOST01)))")
        '(&(objectClass=computer)(name=HOST01))'
    """
    previous = None
    while previous != ldap_filter:
        previous = ldap_filter
        ldap_filter = _REDUNDANT_GROUP.sub(r"(\1)", ldap_filter)
    return ldap_filter


def split_username(username: str, default_domain: str) -> Tuple[str, str]:
    """
    Split "DOMAIN\\user" or "user@domain" into (user, domain).

    Plain usernames get default_domain.
    """
    if "\\" in username:
        domain, user = username.split("\\", 1)
        return user, domain
    if "@" in username:
        user, domain = username.rsplit("@", 1)
        return user, domain
    return username, default_domain


def get_ldap_connection(
    host: str,
    base_dn: str,
    domain: str,
    username: Optional[str] = None,
    password: Optional[str] = None,
    hashes: Optional[str] = None,
    kerberos: bool = False,
    dc_ip: Optional[str] = None,
) -> ldap_impacket.LDAPConnection:
    """
    Establish LDAP connection to a domain controller.

    Tries LDAPS (port 636) first, then falls back to LDAP (port 389).
    Without a username the calling identity is used: a Kerberos login
    from the ticket cache named by KRB5CCNAME.

    Args:
        host: Domain controller name or IP (used for the URL and Kerberos SPN)
        base_dn: Search base for the connection
        domain: Domain name used for authentication
        username: Username ("user", "DOMAIN\\user" or "user@domain")
        password: Password (plaintext)
        hashes: NTLM hashes in LM:NT or NT format
        kerberos: Use Kerberos authentication
        dc_ip: IP to connect to when host is a name that should not be resolved

    Returns:
        LDAPConnection object

    Raises:
        Whatever impacket raised for the last connection attempt; errors are
        not wrapped.
    """
    lmhash, nthash = parse_ntlm_hashes(hashes)
    user, user_domain = split_username(username or "", domain)
    secrets = dict(user=user, password=password or "", domain=user_domain, lmhash=lmhash, nthash=nthash)

    failure: Optional[Exception] = None
    for scheme in LDAP_SCHEMES:
        url = f"{scheme}://{host}"
        debug(f"LDAP: binding to {url}")
        try:
            ldap_conn = ldap_impacket.LDAPConnection(url, baseDN=base_dn, dstIp=dc_ip)
            if kerberos or not username:
                ldap_conn.kerberosLogin(kdcHost=dc_ip or host, useCache=True, **secrets)
            else:
                ldap_conn.login(**secrets)
        except Exception as e:
            debug(f"LDAP: {url} failed: {e}")
            failure = e
            continue
        debug(f"LDAP: bound to {url}")
        return ldap_conn

    # Plain LDAP refusing the bind with strongerAuthRequired means LDAPS was the only way in
    if "strongerAuthRequired" in str(failure):
        debug("LDAP: DC requires signing or LDAPS, and LDAPS did not work either")
    raise failure
