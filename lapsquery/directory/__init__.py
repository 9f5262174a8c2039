# Directory clients for lapsquery.
#
# DirectoryClient is the capability the LAPS search functions depend on.
# LdapDirectory talks to a live domain controller through impacket;
# InMemoryDirectory serves entries from memory or a JSON fixture file.

from .base import Credentials, DirectoryClient, DirectoryConnection, SearchEntry
from .ldap import LdapDirectory
from .memory import InMemoryDirectory

__all__ = [
    "Credentials",
    "DirectoryClient",
    "DirectoryConnection",
    "SearchEntry",
    "LdapDirectory",
    "InMemoryDirectory",
]
