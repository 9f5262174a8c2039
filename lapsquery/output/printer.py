from typing import List, Tuple

from rich.markup import escape
from rich.table import Table

from ..laps.models import ComputerAccount
from ..utils.console import console
from . import COLORS


def account_rows(account: ComputerAccount) -> List[Tuple[str, str, str]]:
    """
    Build the (label, value, style) rows shown for a computer account.

    A missing password and a missing expiration are shown as such rather
    than as empty values.
    """
    if account.has_password:
        password = (account.computer_admin_password, COLORS["password"])
    else:
        password = ("<not set or not readable>", COLORS["warning"])

    if not account.has_expiration:
        expiration = ("<no expiration recorded>", COLORS["warning"])
    elif account.is_expired():
        expiration = (f"{account.computer_admin_password_expiration.isoformat()} (expired)", COLORS["error"])
    else:
        expiration = (account.computer_admin_password_expiration.isoformat(), COLORS["success"])

    return [
        ("Computer", account.computer_name, COLORS["value"]),
        ("Password", *password),
        ("Expires", *expiration),
    ]


def print_computer_account(account: ComputerAccount) -> None:
    """Print a computer account as a two-column Rich table."""
    table = Table(
        title=f"[{COLORS['header']}]\\[LAPS][/] {escape(account.computer_name)}",
        border_style=COLORS["border"],
        show_header=False,
        expand=False,
        padding=(0, 1),
    )

    table.add_column("Field", style=COLORS["label"], width=10)
    table.add_column("Value", style=COLORS["value"])

    for label, value, value_style in account_rows(account):
        table.add_row(f"[{COLORS['label']}]{label}[/]", f"[{value_style}]{escape(value)}[/]")

    console.print(table)
