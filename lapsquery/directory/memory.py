# In-memory directory client.
#
# Serves search results from a fixed set of entries, either built in code
# (tests) or loaded from a JSON fixture file (--offline). Entries live in an
# ldap3 MOCK_SYNC server, which evaluates the search filters.

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from ldap3 import MOCK_SYNC, NONE, SUBTREE, Connection, Server
from ldap3.utils.dn import safe_dn

from ..utils.date_parser import datetime_to_filetime
from ..utils.ldap import build_base_dn, normalize_filter, parse_ldap_path
from ..utils.logging import debug
from .base import Credentials, DirectoryClient, DirectoryConnection, SearchEntry

COMPUTER_OBJECT_CLASSES = ["top", "person", "organizationalPerson", "user", "computer"]


def _normalize_attributes(attributes: Dict[str, Any]) -> SearchEntry:
    normalized = {}
    for name, value in attributes.items():
        values = value if isinstance(value, (list, tuple)) else [value]
        values = [str(v) for v in values if v is not None]
        if values:
            normalized[name.lower()] = values
    return normalized


class MemoryConnection(DirectoryConnection):
    """Connection over the entries below one base DN."""

    def __init__(self, server: Server, base_dn: str, credentials: Optional[Credentials]):
        self.base_dn = base_dn
        self.credentials = credentials
        self.closed = False
        self.searches: List[str] = []
        self._conn = Connection(server, client_strategy=MOCK_SYNC)
        self._conn.bind()

    def _in_scope(self, dn: str) -> bool:
        dn, base = dn.lower(), safe_dn(self.base_dn).lower()
        return dn == base or dn.endswith("," + base)

    def search(
        self,
        ldap_filter: str,
        attributes: Sequence[str],
        size_limit: int = 0,
    ) -> List[SearchEntry]:
        """
        Search the subtree below the base DN.

        Results come back in the order the entries were added.

        Raises:
            RuntimeError: If the connection was closed
            ldap3.core.exceptions.LDAPInvalidFilterError: If the filter is malformed
        """
        if self.closed:
            raise RuntimeError("Search on a closed directory connection")

        self.searches.append(ldap_filter)
        wanted = [a.lower() for a in attributes]
        self._conn.search(self.base_dn, normalize_filter(ldap_filter), search_scope=SUBTREE, attributes=wanted)

        # The mock server matches into a set; restore insertion order
        order = {dn.lower(): i for i, dn in enumerate(self._conn.server.dit)}
        found = sorted(
            (r for r in self._conn.response if r.get("type") == "searchResEntry" and self._in_scope(r["dn"])),
            key=lambda r: order.get(r["dn"].lower(), len(order)),
        )
        if size_limit:
            found = found[:size_limit]

        results = []
        for response in found:
            raw = {name.lower(): values for name, values in response["raw_attributes"].items()}
            results.append({name: [v.decode("utf-8") for v in raw[name]] for name in wanted if raw.get(name)})

        debug(f"Memory: Search {ldap_filter} below {self.base_dn} returned {len(results)} entries")
        return results

    def close(self) -> None:
        if not self.closed:
            self._conn.unbind()
        self.closed = True


class InMemoryDirectory(DirectoryClient):
    """
    Directory client backed by a list of entries.

    Each entry is {"dn": str, "attributes": {name: [values]}}. Every
    connection is recorded in `connections` so callers can check that
    searches were scoped and closed.
    """

    def __init__(self, entries: Optional[List[Dict[str, Any]]] = None):
        self.entries: List[Dict[str, Any]] = []
        self.connections: List[MemoryConnection] = []
        self._server = Server("lapsquery-offline", get_info=NONE)
        self._loader = Connection(self._server, client_strategy=MOCK_SYNC)
        for entry in entries or []:
            self.add_entry(entry["dn"], entry.get("attributes", {}))

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "InMemoryDirectory":
        """
        Load entries from a JSON fixture file.

        The file holds {"entries": [{"dn": ..., "attributes": {...}}, ...]}
        or just the list of entries.
        """
        with open(path, encoding="utf-8") as f:
            data = json.load(f)

        entries = data.get("entries", []) if isinstance(data, dict) else data
        debug(f"Memory: Loaded {len(entries)} directory entries from {path}")
        return cls(entries)

    def add_entry(self, dn: str, attributes: Dict[str, Any]) -> None:
        normalized = _normalize_attributes(attributes)
        if not self._loader.strategy.add_entry(dn, {name: list(values) for name, values in normalized.items()}):
            debug(f"Memory: Skipping duplicate entry {dn}")
            return
        self.entries.append({"dn": dn, "attributes": normalized})

    def add_computer(
        self,
        name: str,
        domain_name: str,
        password: Optional[str] = None,
        expiration: Optional[Union[datetime, int]] = None,
        ou: str = "CN=Computers",
    ) -> None:
        """Add a computer object with optional legacy LAPS attributes."""
        attributes: Dict[str, Any] = {
            "name": name,
            "objectClass": COMPUTER_OBJECT_CLASSES,
            "sAMAccountName": f"{name}$",
        }
        if password is not None:
            attributes["ms-Mcs-AdmPwd"] = password
        if expiration is not None:
            if isinstance(expiration, datetime):
                expiration = datetime_to_filetime(expiration)
            attributes["ms-Mcs-AdmPwdExpirationTime"] = str(expiration)

        self.add_entry(f"CN={name},{ou},{build_base_dn(domain_name)}", attributes)

    def connect(self, ldap_path: str, credentials: Optional[Credentials] = None) -> MemoryConnection:
        _server, base_dn = parse_ldap_path(ldap_path)
        connection = MemoryConnection(self._server, base_dn, credentials)
        self.connections.append(connection)
        return connection
