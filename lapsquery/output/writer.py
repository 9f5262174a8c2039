from ..laps.models import ComputerAccount
from ..utils.logging import good


def write_json(path: str, account: ComputerAccount, silent: bool = False):
    """Write a computer account to path as an indented JSON document."""
    with open(path, "w", encoding="utf-8") as f:
        f.write(account.to_json(indent=2))
        f.write("\n")
    if not silent:
        good(f"Wrote JSON result to {path}")
