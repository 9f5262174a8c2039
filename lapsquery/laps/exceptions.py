# LAPS Exceptions and Error Messages

# =============================================================================
# Exceptions
# =============================================================================


class LAPSError(Exception):
    """Base exception for LAPS operations"""

    pass


class LAPSMissingAttributeError(LAPSError):
    """A directory result lacks a required attribute"""

    def __init__(self, attribute: str):
        self.attribute = attribute
        super().__init__(f"Unable to resolve the '{attribute}' attribute from the supplied input")


class LAPSNotFoundError(LAPSError):
    """No computer object matched the requested name"""

    def __init__(self, computer_name: str):
        self.computer_name = computer_name
        super().__init__(f"Could not find a computer object for '{computer_name}'.")


class LAPSParseError(LAPSError, ValueError):
    """Failed to parse LAPS attribute data or a LAPS JSON document"""

    pass


class DirectoryLocatorError(LAPSError):
    """No domain controller could be located for the domain"""

    pass


# =============================================================================
# Error Messages
# =============================================================================

LAPS_ERRORS = {
    "not_found": (
        "[!] {computer}: No computer object found in {domain}\n"
        "[!] Check: the computer name (not the FQDN) and the domain are correct"
    ),
    "missing_name": (
        "[!] {computer}: Directory result has no 'name' attribute\n"
        "[!] The search returned an object that could not be mapped"
    ),
    "no_password": (
        "[!] {computer}: No LAPS password readable on the computer object\n"
        "[!] Either LAPS is not deployed on this computer or your account lacks\n"
        "[!] 'Read ms-Mcs-AdmPwd' (All Extended Rights) on it"
    ),
    "locator": (
        "[!] LAPS: Could not locate a domain controller for {domain}\n"
        "[!] Specify --server or --dc-ip explicitly or check DNS configuration (--ns)"
    ),
    "ldap_failed": (
        "[!] LAPS: Directory query failed: {error}\n"
        "[!] Check: server is reachable, credentials are valid"
    ),
    "parse_failed": "[!] LAPS: Failed to parse directory data: {error}",
}
