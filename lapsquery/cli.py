import sys
from typing import List, Optional

from rich.markup import escape

from .config import build_parser, load_config, validate_args
from .directory import Credentials, DirectoryClient, InMemoryDirectory, LdapDirectory
from .laps import (
    LAPS_ERRORS,
    ComputerAccount,
    DirectoryLocatorError,
    LAPSMissingAttributeError,
    LAPSNotFoundError,
    LAPSParseError,
    get_computer_account,
)
from .output.printer import print_computer_account
from .output.writer import write_json
from .utils.console import console, print_banner
from .utils.logging import debug, info, set_verbosity, status


def build_directory(args) -> DirectoryClient:
    """Pick the directory client for the parsed arguments."""
    if args.offline:
        info(f"Offline mode: answering from {args.offline}")
        return InMemoryDirectory.from_file(args.offline)

    return LdapDirectory(
        dc_ip=args.dc_ip,
        nameserver=args.nameserver,
        dns_tcp=args.dns_tcp,
        timeout=args.timeout,
    )


def build_credentials(args) -> Optional[Credentials]:
    """Credentials from -u/-p/--hashes/-k, or None for the calling identity."""
    if args.offline or not args.username:
        return None

    return Credentials(
        username=args.username,
        password=args.password,
        hashes=args.hashes,
        kerberos=args.kerberos,
    )


def _abort(message: str, debug_enabled: bool = False) -> None:
    status(message)
    if debug_enabled:
        console.print_exception()
    sys.exit(1)


def run(args) -> ComputerAccount:
    """
    Look up the computer named on the command line.

    Every failure is reported with a LAPS_ERRORS message and exits with
    status 1.
    """
    try:
        directory = build_directory(args)
        credentials = build_credentials(args)
        return get_computer_account(
            directory,
            args.computer_name,
            args.domain,
            server_name=args.server,
            credentials=credentials,
        )
    except LAPSNotFoundError:
        _abort(LAPS_ERRORS["not_found"].format(computer=args.computer_name, domain=args.domain))
    except LAPSMissingAttributeError:
        _abort(LAPS_ERRORS["missing_name"].format(computer=args.computer_name), args.debug)
    except DirectoryLocatorError:
        _abort(LAPS_ERRORS["locator"].format(domain=args.domain), args.debug)
    except LAPSParseError as e:
        _abort(LAPS_ERRORS["parse_failed"].format(error=escape(str(e))), args.debug)
    except Exception as e:
        _abort(LAPS_ERRORS["ldap_failed"].format(error=escape(str(e))), args.debug)


def emit(args, account: ComputerAccount) -> None:
    """Print the account (table or JSON) and write the -o file if asked."""
    if args.json:
        sys.stdout.write(account.to_json(indent=2))
        sys.stdout.write("\n")
        sys.stdout.flush()
    else:
        print_computer_account(account)

    if not account.has_password:
        status(LAPS_ERRORS["no_password"].format(computer=account.computer_name))

    if args.output:
        write_json(args.output, account)


def main(argv: Optional[List[str]] = None):
    ap = build_parser(load_config())
    args = ap.parse_args(argv)

    # Set verbosity early
    set_verbosity(args.verbose, args.debug)

    # Keep stdout clean for the JSON document
    if args.json:
        console.stderr = True

    if not (args.json or args.no_banner):
        print_banner()

    validate_args(args)
    debug(f"Arguments: computer={args.computer_name} domain={args.domain} server={args.server}")

    account = run(args)
    emit(args, account)
