"""
Test suite for LAPS models.

Tests cover:
- ComputerAccount dataclass
- ComputerAccount.from_search_result mapping
- JSON round trip through the record methods
"""

import json
from datetime import datetime, timedelta, timezone

import pytest

from lapsquery.laps.exceptions import LAPSMissingAttributeError, LAPSParseError
from lapsquery.laps.models import LAPS_ATTRIBUTES, ComputerAccount
from lapsquery.utils.date_parser import NO_EXPIRATION

# ============================================================================
# Test: ComputerAccount
# ============================================================================


class TestComputerAccount:
    """Tests for ComputerAccount dataclass"""

    def test_basic_creation(self):
        """Should create an account with only a name"""
        account = ComputerAccount(computer_name="WS01")
        assert account.computer_name == "WS01"
        assert account.computer_admin_password is None
        assert account.computer_admin_password_expiration == NO_EXPIRATION
        assert account.has_password is False
        assert account.has_expiration is False

    def test_empty_name_rejected(self):
        """Should refuse an empty computer name"""
        with pytest.raises(LAPSMissingAttributeError) as exc_info:
            ComputerAccount(computer_name="")
        assert exc_info.value.attribute == "name"

    def test_naive_expiration_becomes_utc(self):
        """Should attach UTC to naive expiration datetimes"""
        account = ComputerAccount("WS01", "pw", datetime(2030, 1, 1))
        assert account.computer_admin_password_expiration.tzinfo == timezone.utc

    def test_password_hidden_from_repr(self):
        """Should not show the password in repr()"""
        account = ComputerAccount("WS01", "Secr3t!")
        assert "Secr3t!" not in repr(account)
        assert "WS01" in repr(account)

    def test_frozen(self):
        """Should be immutable"""
        account = ComputerAccount("WS01")
        with pytest.raises(AttributeError):
            account.computer_name = "WS02"

    def test_equality(self):
        """Should compare by value"""
        expiration = datetime(2030, 1, 1, tzinfo=timezone.utc)
        assert ComputerAccount("WS01", "pw", expiration) == ComputerAccount("WS01", "pw", expiration)

    def test_is_expired_past(self):
        """Should report expired when the expiration lies in the past"""
        past = datetime.now(timezone.utc) - timedelta(days=1)
        assert ComputerAccount("WS01", "pw", past).is_expired() is True

    def test_is_expired_future(self):
        """Should report not expired when the expiration lies in the future"""
        future = datetime.now(timezone.utc) + timedelta(days=1)
        assert ComputerAccount("WS01", "pw", future).is_expired() is False

    def test_is_expired_without_expiration(self):
        """Should never report expired without a recorded expiration"""
        assert ComputerAccount("WS01", "pw").is_expired() is False

    def test_is_expired_reference_time(self):
        """Should compare against the given reference time"""
        expiration = datetime(2030, 1, 1, tzinfo=timezone.utc)
        account = ComputerAccount("WS01", "pw", expiration)
        assert account.is_expired(now=expiration + timedelta(seconds=1)) is True
        assert account.is_expired(now=expiration) is False


# ============================================================================
# Test: from_search_result
# ============================================================================


class TestFromSearchResult:
    """Tests for ComputerAccount.from_search_result"""

    def test_full_result(self):
        """Should map all three attributes"""
        account = ComputerAccount.from_search_result(
            {
                "name": ["WS01"],
                "ms-mcs-admpwd": ["Secr3t!"],
                "ms-mcs-admpwdexpirationtime": ["132223200000000000"],
            }
        )
        assert account.computer_name == "WS01"
        assert account.computer_admin_password == "Secr3t!"
        assert account.computer_admin_password_expiration == datetime(2020, 1, 1, 2, 40, tzinfo=timezone.utc)

    def test_case_insensitive_keys(self):
        """Should match attribute names regardless of case"""
        account = ComputerAccount.from_search_result(
            {
                "Name": ["WS01"],
                "ms-Mcs-AdmPwd": ["Secr3t!"],
                "ms-Mcs-AdmPwdExpirationTime": [132223200000000000],
            }
        )
        assert account.computer_admin_password == "Secr3t!"
        assert account.has_expiration is True

    def test_scalar_values(self):
        """Should accept single values instead of lists"""
        account = ComputerAccount.from_search_result({"name": "WS01", "ms-mcs-admpwd": b"Secr3t!"})
        assert account.computer_name == "WS01"
        assert account.computer_admin_password == "Secr3t!"

    def test_name_only(self):
        """Should leave password unset and expiration at the sentinel"""
        account = ComputerAccount.from_search_result({"name": ["WS03"]})
        assert account.computer_admin_password is None
        assert account.computer_admin_password_expiration == NO_EXPIRATION

    def test_zero_expiration(self):
        """Should map FILETIME 0 to 1601, not to the sentinel"""
        account = ComputerAccount.from_search_result({"name": ["WS01"], "ms-mcs-admpwdexpirationtime": ["0"]})
        assert account.computer_admin_password_expiration == datetime(1601, 1, 1, tzinfo=timezone.utc)
        assert account.has_expiration is True

    def test_missing_name(self):
        """Should raise LAPSMissingAttributeError without a name"""
        with pytest.raises(LAPSMissingAttributeError):
            ComputerAccount.from_search_result({"ms-mcs-admpwd": ["Secr3t!"]})

    def test_empty_name_list(self):
        """Should raise LAPSMissingAttributeError for an empty name list"""
        with pytest.raises(LAPSMissingAttributeError):
            ComputerAccount.from_search_result({"name": []})

    def test_invalid_expiration(self):
        """Should raise LAPSParseError for a non-numeric expiration"""
        with pytest.raises(LAPSParseError) as exc_info:
            ComputerAccount.from_search_result({"name": ["WS01"], "ms-mcs-admpwdexpirationtime": ["never"]})
        assert "WS01" in str(exc_info.value)

    def test_out_of_range_expiration(self):
        """Should raise LAPSParseError for FILETIMEs beyond datetime.max"""
        with pytest.raises(LAPSParseError):
            ComputerAccount.from_search_result(
                {"name": ["WS01"], "ms-mcs-admpwdexpirationtime": [str(2**63 - 1)]}
            )

    def test_requested_attributes(self):
        """Should request exactly name, password and expiration"""
        assert LAPS_ATTRIBUTES == ("name", "ms-mcs-admpwd", "ms-mcs-admpwdexpirationtime")


# ============================================================================
# Test: JSON methods
# ============================================================================


class TestComputerAccountJson:
    """Tests for ComputerAccount.to_json / from_json"""

    def test_property_names(self):
        """Should write the three documented property names"""
        account = ComputerAccount("WS01", "Secr3t!", datetime(2020, 1, 1, 2, 40, tzinfo=timezone.utc))
        data = json.loads(account.to_json())
        assert data == {
            "computerName": "WS01",
            "computerAdminPassword": "Secr3t!",
            "computerAdminPasswordExpirationDateTime": "2020-01-01T02:40:00+00:00",
        }

    def test_null_password(self):
        """Should write a missing password as null"""
        data = json.loads(ComputerAccount("WS03").to_json())
        assert data["computerAdminPassword"] is None
        assert data["computerAdminPasswordExpirationDateTime"] == "0001-01-01T00:00:00+00:00"

    def test_round_trip(self):
        """Should read back an equal record"""
        account = ComputerAccount("WS01", "Secr3t!", datetime(2020, 1, 1, 2, 40, tzinfo=timezone.utc))
        assert ComputerAccount.from_json(account.to_json()) == account

    def test_round_trip_sentinel(self):
        """Should keep the no-expiration sentinel across a round trip"""
        restored = ComputerAccount.from_json(ComputerAccount("WS03").to_json(indent=2))
        assert restored.has_expiration is False
        assert restored.computer_admin_password is None
