"""lapsquery - read legacy LAPS passwords from Active Directory."""

__version__ = "1.0.0"
