# Small helpers shared by the CLI, the DC locator and the LDAP bind code.

import ipaddress
from typing import Optional, Tuple


def is_ipv4(host: str) -> bool:
    """True for dotted-quad IPv4 addresses (Kerberos needs host names instead)."""
    try:
        ipaddress.IPv4Address(host.strip())
    except ValueError:
        return False
    return True


def parse_ntlm_hashes(hashes: Optional[str]) -> Tuple[str, str]:
    """
    Split an NTLM hash argument into (lmhash, nthash).

    Accepts "LM:NT" or a bare NT hash. An empty LM part (":NT") is fine;
    impacket treats "" as the empty LM hash.

    Examples:
        >>> parse_ntlm_hashes("aad3b435b51404eeaad3b435b51404ee:31d6cfe0d16ae931b73c59d7e0c089c0")
        ('aad3b435b51404eeaad3b435b51404ee', '31d6cfe0d16ae931b73c59d7e0c089c0')
        >>> parse_ntlm_hashes(None)
        ('', '')
    """
    lmhash, sep, nthash = (hashes or "").partition(":")
    if not sep:
        return "", lmhash
    return lmhash, nthash
