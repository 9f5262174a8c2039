# LAPS Directory Search Functions
from typing import List, Optional

from ldap3.utils.conv import escape_filter_chars

from ..directory.base import Credentials, DirectoryClient
from ..utils.ldap import build_ldap_path
from ..utils.logging import debug, good, info
from .exceptions import LAPSNotFoundError
from .models import ATTR_ADMIN_PASSWORD, LAPS_ATTRIBUTES, ComputerAccount

# Computers with a legacy LAPS password set, expired or not
LAPS_ENABLED_FILTER = f"(&(objectClass=computer)(({ATTR_ADMIN_PASSWORD}=*)))"


# =============================================================================
# Filter Construction
# =============================================================================


def build_computer_filter(computer_name: str) -> str:
    """
    Build the search filter for one computer object by name.

    The name is escaped, so "*" or parentheses in it never widen the match.

    Examples:
        >>> build_computer_filter("HOST01")
        '(&(objectClass=computer)((name=HOST01)))'
    """
    return f"(&(objectClass=computer)((name={escape_filter_chars(computer_name)})))"


def _require(value: Optional[str], what: str) -> str:
    if not value or not value.strip():
        raise ValueError(f"{what} must be a non-empty string")
    return value.strip()


def _optional(value: Optional[str]) -> Optional[str]:
    return value.strip() or None if value else None


# =============================================================================
# Search Functions
# =============================================================================


def get_computer_account(
    directory: DirectoryClient,
    computer_name: str,
    domain_name: str,
    server_name: Optional[str] = None,
    credentials: Optional[Credentials] = None,
) -> ComputerAccount:
    """
    Get LAPS data for a single computer account.

    Args:
        directory: Directory client to search with
        computer_name: Name of the computer account (not the FQDN)
        domain_name: FQDN of the domain (e.g., "example.com")
        server_name: Domain controller to query; None or "" uses the domain locator
        credentials: Bind credentials; None uses the calling identity

    Returns:
        ComputerAccount for the first matching object

    Raises:
        ValueError: If computer_name or domain_name is empty
        LAPSNotFoundError: If no computer object has that name
        LAPSMissingAttributeError: If the result has no 'name' attribute
    """
    computer_name = _require(computer_name, "Computer name")
    domain_name = _require(domain_name, "Domain name")

    ldap_filter = build_computer_filter(computer_name)
    ldap_path = build_ldap_path(domain_name, _optional(server_name))

    info(f"LAPS: Looking up {computer_name} in {ldap_path}")

    with directory.connect(ldap_path, credentials) as connection:
        results = connection.search(ldap_filter, LAPS_ATTRIBUTES, size_limit=1)

    if not results:
        raise LAPSNotFoundError(computer_name)

    account = ComputerAccount.from_search_result(results[0])
    good(f"LAPS: Found computer object {account.computer_name}")
    if not account.has_password:
        debug(f"LAPS: No readable {ATTR_ADMIN_PASSWORD} on {account.computer_name}")

    return account


def get_computer_accounts(
    directory: DirectoryClient,
    domain_name: str,
    server_name: Optional[str] = None,
    credentials: Optional[Credentials] = None,
) -> List[ComputerAccount]:
    """
    Get LAPS data for every computer account with a LAPS password set.

    All results are fetched and mapped before returning. Computers whose
    password has expired are included.

    Args:
        directory: Directory client to search with
        domain_name: FQDN of the domain (e.g., "example.com")
        server_name: Domain controller to query; None or "" uses the domain locator
        credentials: Bind credentials; None uses the calling identity

    Returns:
        List of ComputerAccount (empty if no computer has a LAPS password)
    """
    domain_name = _require(domain_name, "Domain name")
    ldap_path = build_ldap_path(domain_name, _optional(server_name))

    info(f"LAPS: Querying computer objects with LAPS passwords in {ldap_path}")

    with directory.connect(ldap_path, credentials) as connection:
        results = connection.search(LAPS_ENABLED_FILTER, LAPS_ATTRIBUTES)

    accounts = [ComputerAccount.from_search_result(entry) for entry in results]
    good(f"LAPS: Found {len(accounts)} computers with LAPS passwords")

    return accounts
