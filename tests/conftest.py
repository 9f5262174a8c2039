"""
Pytest configuration and shared fixtures for lapsquery tests.
"""

import json
from datetime import datetime, timezone

import pytest

from lapsquery.directory import InMemoryDirectory
from lapsquery.utils import console as console_module
from lapsquery.utils.logging import set_verbosity

DOMAIN = "example.com"

# FILETIME 132223200000000000 == 2020-01-01T02:40:00Z
EXPIRED_FILETIME = 132223200000000000
FUTURE_EXPIRATION = datetime(2099, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def reset_output(monkeypatch):
    """Reset verbosity and console routing before and after each test"""
    monkeypatch.delenv("LAPSQUERY_DEBUG", raising=False)
    set_verbosity(False, False)
    console_module.console.stderr = False
    yield
    set_verbosity(False, False)
    console_module.console.stderr = False


@pytest.fixture
def directory():
    """In-memory domain with a mix of LAPS and non-LAPS computers"""
    d = InMemoryDirectory()
    d.add_computer("WS01", DOMAIN, password="Secr3t!", expiration=FUTURE_EXPIRATION)
    d.add_computer("WS02", DOMAIN, password="0ldPassw0rd", expiration=EXPIRED_FILETIME)
    d.add_computer("WS03", DOMAIN)
    d.add_computer("SRV01", DOMAIN, password="Serv3r#1", ou="OU=Servers")
    # Same name in another domain must never leak into example.com searches
    d.add_computer("WS01", "other.org", password="wrong")
    return d


@pytest.fixture
def offline_file(tmp_path):
    """JSON directory fixture file as used by --offline"""
    data = {
        "entries": [
            {
                "dn": "CN=WS01,CN=Computers,DC=example,DC=com",
                "attributes": {
                    "name": ["WS01"],
                    "objectClass": ["top", "person", "organizationalPerson", "user", "computer"],
                    "ms-Mcs-AdmPwd": ["Secr3t!"],
                    "ms-Mcs-AdmPwdExpirationTime": [str(EXPIRED_FILETIME)],
                },
            },
            {
                "dn": "CN=WS03,CN=Computers,DC=example,DC=com",
                "attributes": {
                    "name": "WS03",
                    "objectClass": ["top", "computer"],
                },
            },
        ]
    }
    path = tmp_path / "directory.json"
    path.write_text(json.dumps(data), encoding="utf-8")
    return path
