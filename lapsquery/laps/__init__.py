# Legacy LAPS (Local Administrator Password Solution) support for lapsquery
#
# This package reads the ms-Mcs-AdmPwd password and its
# ms-Mcs-AdmPwdExpirationTime from computer objects in Active Directory
# and maps them onto ComputerAccount records.

# Exceptions
from .exceptions import (
    LAPS_ERRORS,
    DirectoryLocatorError,
    LAPSError,
    LAPSMissingAttributeError,
    LAPSNotFoundError,
    LAPSParseError,
)

# Data classes
from .models import (
    LAPS_ATTRIBUTES,
    ComputerAccount,
)

# Search functions
from .search import (
    LAPS_ENABLED_FILTER,
    build_computer_filter,
    get_computer_account,
    get_computer_accounts,
)

# JSON round trip
from .serialization import (
    from_json,
    to_json,
)

__all__ = [
    # Exceptions
    "LAPSError",
    "LAPSMissingAttributeError",
    "LAPSNotFoundError",
    "LAPSParseError",
    "DirectoryLocatorError",
    "LAPS_ERRORS",
    # Data classes
    "ComputerAccount",
    "LAPS_ATTRIBUTES",
    # Search
    "LAPS_ENABLED_FILTER",
    "build_computer_filter",
    "get_computer_account",
    "get_computer_accounts",
    # JSON
    "to_json",
    "from_json",
]
