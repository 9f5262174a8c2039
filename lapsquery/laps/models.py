# LAPS Data Models
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from ..utils.date_parser import NO_EXPIRATION, filetime_to_datetime
from .exceptions import LAPSMissingAttributeError, LAPSParseError
from .serialization import from_json, to_json

# Directory attributes read for every computer account
ATTR_NAME = "name"
ATTR_ADMIN_PASSWORD = "ms-mcs-admpwd"
ATTR_EXPIRATION_TIME = "ms-mcs-admpwdexpirationtime"

LAPS_ATTRIBUTES = (ATTR_NAME, ATTR_ADMIN_PASSWORD, ATTR_EXPIRATION_TIME)


def _first_value(attributes: Mapping[str, Any], key: str) -> Optional[str]:
    """Return the first value of an attribute as str, or None if absent."""
    value = attributes.get(key)
    if isinstance(value, (list, tuple)):
        value = value[0] if value else None
    if value is None:
        return None
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return str(value)


# =============================================================================
# Data Classes
# =============================================================================


@dataclass(frozen=True)
class ComputerAccount:
    """A computer account in Active Directory and its LAPS data"""

    computer_name: str = field(metadata={"json": "computerName"})
    # None when the attribute is absent or unreadable for the caller
    computer_admin_password: Optional[str] = field(
        default=None, repr=False, metadata={"json": "computerAdminPassword"}
    )
    # NO_EXPIRATION when the directory has no expiration time recorded
    computer_admin_password_expiration: datetime = field(
        default=NO_EXPIRATION, metadata={"json": "computerAdminPasswordExpirationDateTime"}
    )

    def __post_init__(self):
        if not self.computer_name:
            raise LAPSMissingAttributeError(ATTR_NAME)

        expiration = self.computer_admin_password_expiration
        if expiration.tzinfo is None:
            object.__setattr__(self, "computer_admin_password_expiration", expiration.replace(tzinfo=timezone.utc))

    @classmethod
    def from_search_result(cls, attributes: Mapping[str, Any]) -> "ComputerAccount":
        """
        Create from the attributes of a directory search result.

        Attribute names are matched case-insensitively. Values may be lists
        (first value is used) or single values.

        Args:
            attributes: Mapping of attribute name to value(s) for name,
                ms-mcs-admpwd and ms-mcs-admpwdexpirationtime

        Returns:
            ComputerAccount

        Raises:
            LAPSMissingAttributeError: If 'name' is absent or empty
            LAPSParseError: If the expiration time is not a valid FILETIME
        """
        attrs = {str(key).lower(): value for key, value in attributes.items()}

        computer_name = _first_value(attrs, ATTR_NAME)
        if not computer_name:
            raise LAPSMissingAttributeError(ATTR_NAME)

        expiration = NO_EXPIRATION
        raw_expiration = _first_value(attrs, ATTR_EXPIRATION_TIME)
        if raw_expiration is not None:
            try:
                expiration = filetime_to_datetime(raw_expiration)
            except (ValueError, OverflowError) as e:
                raise LAPSParseError(
                    f"Invalid {ATTR_EXPIRATION_TIME} value {raw_expiration!r} for {computer_name}: {e}"
                ) from e

        return cls(
            computer_name=computer_name,
            computer_admin_password=_first_value(attrs, ATTR_ADMIN_PASSWORD),
            computer_admin_password_expiration=expiration,
        )

    @property
    def has_password(self) -> bool:
        return self.computer_admin_password is not None

    @property
    def has_expiration(self) -> bool:
        return self.computer_admin_password_expiration != NO_EXPIRATION

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """Check if the LAPS password has expired (never, without an expiration)"""
        if not self.has_expiration:
            return False
        return (now or datetime.now(timezone.utc)) > self.computer_admin_password_expiration

    def to_json(self, indent: Optional[int] = None) -> str:
        """Serialize to the computerName/computerAdminPassword/... JSON document"""
        return to_json(self, indent=indent)

    @classmethod
    def from_json(cls, json_string: str) -> "ComputerAccount":
        """Deserialize from a JSON document written by to_json()"""
        return from_json(cls, json_string)
