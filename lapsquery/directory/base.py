# Directory search capability.
#
# The LAPS search functions only need "open a connection for an LDAP path,
# run one filtered search, close". DirectoryClient captures that so the live
# impacket client and the in-memory fixture are interchangeable.

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

# One search result: lowercased attribute name -> values
SearchEntry = Dict[str, List[str]]


@dataclass(frozen=True)
class Credentials:
    """
    Credentials for binding to the directory.

    Attributes:
        username: "user", "DOMAIN\\user" or "user@domain"
        password: Plaintext password
        hashes: NTLM hashes in LM:NT or NT format (alternative to password)
        kerberos: Use Kerberos instead of NTLM
    """

    username: str
    password: Optional[str] = field(default=None, repr=False)
    hashes: Optional[str] = field(default=None, repr=False)
    kerberos: bool = False


class DirectoryConnection(ABC):
    """An open directory connection rooted at one LDAP path."""

    @abstractmethod
    def search(
        self,
        ldap_filter: str,
        attributes: Sequence[str],
        size_limit: int = 0,
    ) -> List[SearchEntry]:
        """Run a subtree search below the connection's base DN.

        Args:
            ldap_filter: RFC 4515 filter (redundant grouping parentheses allowed)
            attributes: Attribute names to return
            size_limit: Maximum number of entries (0 = no limit)

        Returns:
            Matching entries with lowercased attribute names; attributes the
            object does not carry (or the caller cannot read) are absent.
        """
        ...

    @abstractmethod
    def close(self) -> None:
        ...

    def __enter__(self) -> "DirectoryConnection":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class DirectoryClient(ABC):
    """Opens directory connections for LDAP paths."""

    @abstractmethod
    def connect(self, ldap_path: str, credentials: Optional[Credentials] = None) -> DirectoryConnection:
        """Open a connection for an LDAP path.

        Args:
            ldap_path: "LDAP://[server/]DC=...,DC=..."
            credentials: Bind credentials; None binds as the calling identity

        Errors from the underlying client propagate unchanged.
        """
        ...
