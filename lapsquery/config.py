import argparse
import os
import sys
from typing import Any, Dict, List, Optional, Tuple

from rich_argparse import RichHelpFormatter

try:
    import tomllib
except ImportError:
    import tomli as tomllib

from .utils.console import LAPSQUERY_BLUE
from .utils.helpers import is_ipv4
from .utils.logging import error, info, warn

CONFIG_FILENAME = "lapsquery.toml"

DEFAULT_CONFIG_PATHS = [
    CONFIG_FILENAME,
    os.path.join("config", CONFIG_FILENAME),
    os.path.expanduser(os.path.join("~", ".config", "lapsquery", CONFIG_FILENAME)),
]

# (toml section, toml key) -> argparse destination
CONFIG_KEYS = {
    ("authentication", "username"): "username",
    ("authentication", "password"): "password",
    ("authentication", "domain"): "domain",
    ("authentication", "hashes"): "hashes",
    ("authentication", "kerberos"): "kerberos",
    ("target", "server"): "server",
    ("target", "dc_ip"): "dc_ip",
    ("target", "nameserver"): "nameserver",
    ("target", "dns_tcp"): "dns_tcp",
    ("target", "timeout"): "timeout",
    ("directory", "offline"): "offline",
    ("output", "json"): "json",
    ("output", "output"): "output",
    ("output", "verbose"): "verbose",
    ("output", "debug"): "debug",
}


class TableRichHelpFormatter(RichHelpFormatter):
    """Help output with uppercase group titles in the banner colors."""

    styles = dict(
        RichHelpFormatter.styles,
        **{
            "argparse.groups": f"bold {LAPSQUERY_BLUE}",
            "argparse.args": "cyan",
            "argparse.metavar": "yellow",
            "argparse.help": "default",
        },
    )
    group_name_formatter = str.upper


class OnceOnly(argparse.Action):
    """
    Store action that refuses a second occurrence of the same option.

    Catches typos such as "-d example.com -debug", where "-debug" would
    otherwise be read as "-d ebug" and silently replace the domain. Config
    file defaults do not count as an occurrence. Occurrences are tracked on
    the parser, which LapsQueryParser resets for every parse.
    """

    def __call__(self, parser, namespace, values, option_string=None):
        seen = parser.__dict__.setdefault("once_only_seen", set())
        if self.dest in seen:
            raise argparse.ArgumentError(self, f"{option_string} can only be specified once")
        seen.add(self.dest)
        setattr(namespace, self.dest, values)


class LapsQueryParser(argparse.ArgumentParser):
    """ArgumentParser that starts every parse with no OnceOnly options seen."""

    def parse_known_args(self, args=None, namespace=None):
        self.once_only_seen = set()
        return super().parse_known_args(args, namespace)


def _read_first_config(paths: List[str]) -> Tuple[Optional[str], Dict[str, Any]]:
    """Return (path, parsed TOML) of the first readable config file."""
    for path in paths:
        if not os.path.isfile(path):
            continue
        try:
            with open(path, "rb") as f:
                return path, tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as e:
            warn(f"Error loading config file {path}: {e}")
    return None, {}


def load_config(paths: Optional[List[str]] = None) -> Dict[str, Any]:
    """
    Load parser defaults from the first TOML config file found.

    Searched in order: ./lapsquery.toml, ./config/lapsquery.toml,
    ~/.config/lapsquery/lapsquery.toml. Keys outside CONFIG_KEYS are ignored.

    Returns:
        Dict of argparse destination -> value (empty if no file was found)
    """
    loaded_path, config_data = _read_first_config(DEFAULT_CONFIG_PATHS if paths is None else paths)
    if not config_data:
        return {}

    if loaded_path == CONFIG_FILENAME:
        # Current working directory may not be trusted
        warn(f"Using {CONFIG_FILENAME} from current directory")
        warn(f"This can be a security risk - consider moving it to config/{CONFIG_FILENAME}")

    defaults = {
        dest: config_data[section][key]
        for (section, key), dest in CONFIG_KEYS.items()
        if key in config_data.get(section, {})
    }

    info(f"Loaded configuration from {loaded_path}")
    return defaults


def build_parser(config_defaults: Optional[Dict[str, Any]] = None) -> argparse.ArgumentParser:
    ap = LapsQueryParser(
        prog="lapsquery",
        description="Read the legacy LAPS password of a computer account from Active Directory.",
        formatter_class=TableRichHelpFormatter,
    )

    ap.add_argument("computer_name", metavar="COMPUTER", help="Computer account name (e.g., WS01, not the FQDN)")

    # Authentication options
    auth = ap.add_argument_group("Authentication options")
    auth.add_argument(
        "-u", "--username", action=OnceOnly,
        help="Username (user, DOMAIN\\user or user@domain). Omit to use the Kerberos ticket cache",
    )
    auth.add_argument("-p", "--password", action=OnceOnly, help="Password")
    auth.add_argument("-d", "--domain", action=OnceOnly, help="Domain FQDN (e.g., example.com)")
    auth.add_argument(
        "--hashes", help="NTLM hashes in LM:NT format (or NT-only 32-hex) to use instead of password"
    )
    auth.add_argument("-k", "--kerberos", action="store_true", help="Use Kerberos authentication (supports ccache)")

    # Target selection
    target = ap.add_argument_group("Target options")
    target.add_argument(
        "-s", "--server", action=OnceOnly,
        help="Domain controller to query. If not specified, one is located via DNS SRV records",
    )
    target.add_argument("--dc-ip", help="Domain controller IP (skips DNS resolution of --server)")
    target.add_argument(
        "--ns", "--nameserver",
        dest="nameserver",
        help="DNS nameserver for DC discovery. If not specified, uses system DNS.",
    )
    target.add_argument(
        "--dns-tcp",
        action="store_true",
        help="Force DNS queries over TCP instead of UDP (SOCKS proxies, proxychains).",
    )
    target.add_argument(
        "--timeout",
        type=int,
        default=10,
        help="Timeout in seconds for DC discovery (default: 10).",
    )

    # Directory source
    directory = ap.add_argument_group("Directory options")
    directory.add_argument(
        "--offline",
        metavar="FILE",
        help="Answer from a JSON directory fixture instead of a live domain controller",
    )

    # Output
    output = ap.add_argument_group("Output options")
    output.add_argument("--json", action="store_true", help="Print the record as a JSON document")
    output.add_argument("-o", "--output", metavar="FILE", help="Also write the record as JSON to FILE")
    output.add_argument("--no-banner", action="store_true", help="Do not print the banner")
    output.add_argument("-v", "--verbose", action="store_true", help="Verbose output")
    output.add_argument("--debug", action="store_true", help="Debug output (also: LAPSQUERY_DEBUG=1)")

    if config_defaults:
        ap.set_defaults(**config_defaults)

    return ap


def _fail(msg: str):
    error(msg)
    sys.exit(1)


def validate_args(args: argparse.Namespace) -> None:
    """Reject empty or inconsistent parameters before touching the directory."""
    if not args.computer_name or not args.computer_name.strip():
        _fail("Computer name must not be empty")

    if not args.domain or not args.domain.strip():
        _fail("Domain (-d/--domain) is required")

    if "." not in args.domain:
        warn("Domain appears to be NetBIOS format (e.g., 'DOMAIN')")
        warn("LDAP paths require FQDN format (e.g., 'domain.local')")

    if args.server is not None and not args.server.strip():
        args.server = None

    if args.offline:
        if not os.path.isfile(args.offline):
            _fail(f"Offline directory file does not exist: {args.offline}")
        # No authentication in offline mode
        return

    if args.password and args.hashes:
        _fail("Cannot specify both --password and --hashes")

    if args.username is not None and not args.username.strip():
        _fail("Username must not be empty")

    if args.username and not (args.password or args.hashes or args.kerberos):
        _fail("Authentication required: -p PASSWORD, --hashes HASH or -k (Kerberos ccache)")

    if not args.username and (args.password or args.hashes):
        _fail("-p/--password and --hashes need a username (-u)")

    if not args.username:
        if "KRB5CCNAME" not in os.environ:
            warn("No username given and KRB5CCNAME is not set - Kerberos login will likely fail")
        info("No username given - using the Kerberos ticket cache (calling identity)")

    if args.kerberos and args.server and is_ipv4(args.server):
        warn("Kerberos needs the DC hostname for its SPN; --server is an IP address")
