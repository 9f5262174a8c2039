"""
Test CLI argument parsing, config file loading and validation.
"""

import argparse

import pytest

from lapsquery.config import OnceOnly, build_parser, load_config, validate_args


def _parse(argv, defaults=None):
    return build_parser(defaults).parse_args(argv)


# ============================================================================
# Test: build_parser
# ============================================================================


class TestBuildParser:
    """Tests for build_parser"""

    def test_minimal(self):
        """Should parse the computer name and domain"""
        args = _parse(["WS01", "-d", "example.com"])
        assert args.computer_name == "WS01"
        assert args.domain == "example.com"
        assert args.server is None
        assert args.username is None
        assert args.timeout == 10
        assert args.json is False

    def test_all_options(self):
        """Should parse every option"""
        args = _parse(
            [
                "WS01", "-d", "example.com", "-u", "alice", "-p", "pw", "-k",
                "-s", "dc1.example.com", "--dc-ip", "10.0.0.1", "--ns", "10.0.0.53", "--dns-tcp",
                "--timeout", "3", "--json", "-o", "out.json", "--no-banner", "-v", "--debug",
            ]
        )
        assert args.username == "alice"
        assert args.password == "pw"
        assert args.kerberos is True
        assert args.server == "dc1.example.com"
        assert args.dc_ip == "10.0.0.1"
        assert args.nameserver == "10.0.0.53"
        assert args.dns_tcp is True
        assert args.timeout == 3
        assert args.output == "out.json"
        assert args.no_banner is True
        assert args.verbose is True
        assert args.debug is True

    def test_once_only(self, capsys):
        """Should reject options given twice"""
        with pytest.raises(SystemExit):
            _parse(["WS01", "-d", "example.com", "-d", "other.org"])
        assert "can only be specified once" in capsys.readouterr().err

    def test_config_defaults(self):
        """Should take defaults from the config file values"""
        args = _parse(["WS01"], {"domain": "example.com", "server": "dc1.example.com", "timeout": 4})
        assert args.domain == "example.com"
        assert args.server == "dc1.example.com"
        assert args.timeout == 4

    def test_command_line_overrides_config(self):
        """Should let a OnceOnly option override its config default"""
        args = _parse(["WS01", "-d", "other.org"], {"domain": "example.com"})
        assert args.domain == "other.org"

    def test_once_only_state_kept_off_namespace(self):
        """Should not leave bookkeeping attributes on the parsed namespace"""
        args = _parse(["WS01", "-d", "example.com", "-u", "alice"])
        assert not [name for name in vars(args) if name.startswith("_")]

    def test_parser_reusable(self):
        """Should accept the same options again on a second parse"""
        parser = build_parser()
        parser.parse_args(["WS01", "-d", "example.com"])
        assert parser.parse_args(["WS02", "-d", "other.org"]).domain == "other.org"

    def test_missing_computer(self):
        """Should require the computer name"""
        with pytest.raises(SystemExit):
            _parse(["-d", "example.com"])

    def test_once_only_is_action(self):
        """OnceOnly is an argparse Action"""
        assert issubclass(OnceOnly, argparse.Action)


# ============================================================================
# Test: load_config
# ============================================================================


class TestLoadConfig:
    """Tests for load_config"""

    def test_no_file(self, tmp_path):
        """Should return no defaults without a config file"""
        assert load_config([str(tmp_path / "missing.toml")]) == {}

    def test_sections_mapped(self, tmp_path):
        """Should map TOML sections onto parser destinations"""
        path = tmp_path / "lapsquery.toml"
        path.write_text(
            "[authentication]\n"
            'username = "alice"\n'
            "kerberos = true\n"
            "[target]\n"
            'server = "dc1.example.com"\n'
            "timeout = 7\n"
            "[directory]\n"
            'offline = "dir.json"\n'
            "[output]\n"
            "json = true\n"
            "[unrelated]\n"
            'key = "ignored"\n'
        )
        assert load_config([str(path)]) == {
            "username": "alice",
            "kerberos": True,
            "server": "dc1.example.com",
            "timeout": 7,
            "offline": "dir.json",
            "json": True,
        }

    def test_first_existing_file_wins(self, tmp_path):
        """Should stop at the first file found"""
        first = tmp_path / "first.toml"
        second = tmp_path / "second.toml"
        first.write_text('[authentication]\ndomain = "first.com"\n')
        second.write_text('[authentication]\ndomain = "second.com"\n')
        assert load_config([str(tmp_path / "missing.toml"), str(first), str(second)]) == {"domain": "first.com"}

    def test_invalid_toml(self, tmp_path, capsys):
        """Should warn and skip files that are not valid TOML"""
        path = tmp_path / "broken.toml"
        path.write_text("[authentication\n")
        assert load_config([str(path)]) == {}
        assert "Error loading config file" in capsys.readouterr().out


# ============================================================================
# Test: validate_args
# ============================================================================


class TestValidateArgs:
    """Tests for validate_args"""

    def test_valid_password_login(self):
        """Should accept username with password"""
        args = _parse(["WS01", "-d", "example.com", "-u", "alice", "-p", "pw"])
        validate_args(args)

    def test_missing_domain(self, capsys):
        """Should exit when no domain is given"""
        with pytest.raises(SystemExit) as exc_info:
            validate_args(_parse(["WS01"]))
        assert exc_info.value.code == 1
        assert "Domain" in capsys.readouterr().out

    def test_blank_computer(self):
        """Should exit for a blank computer name"""
        with pytest.raises(SystemExit):
            validate_args(_parse(["  ", "-d", "example.com"]))

    def test_password_and_hashes(self):
        """Should refuse both password and hashes"""
        args = _parse(["WS01", "-d", "example.com", "-u", "alice", "-p", "pw", "--hashes", "aa:bb"])
        with pytest.raises(SystemExit):
            validate_args(args)

    def test_username_without_secret(self):
        """Should require a password, hash or Kerberos with a username"""
        with pytest.raises(SystemExit):
            validate_args(_parse(["WS01", "-d", "example.com", "-u", "alice"]))

    def test_username_with_kerberos(self):
        """Should accept a username with -k"""
        validate_args(_parse(["WS01", "-d", "example.com", "-u", "alice", "-k"]))

    def test_calling_identity_warns_without_ccache(self, monkeypatch, capsys):
        """Should warn when no ticket cache is configured"""
        monkeypatch.delenv("KRB5CCNAME", raising=False)
        validate_args(_parse(["WS01", "-d", "example.com"]))
        assert "KRB5CCNAME" in capsys.readouterr().out

    def test_blank_server_cleared(self, monkeypatch):
        """Should treat a blank server like no server"""
        monkeypatch.setenv("KRB5CCNAME", "/tmp/krb5cc")
        args = _parse(["WS01", "-d", "example.com", "-s", " "])
        validate_args(args)
        assert args.server is None

    def test_netbios_domain_warns(self, monkeypatch, capsys):
        """Should warn about NetBIOS domain names"""
        monkeypatch.setenv("KRB5CCNAME", "/tmp/krb5cc")
        validate_args(_parse(["WS01", "-d", "CORP"]))
        assert "NetBIOS" in capsys.readouterr().out

    def test_offline_missing_file(self, tmp_path):
        """Should exit when the offline file does not exist"""
        args = _parse(["WS01", "-d", "example.com", "--offline", str(tmp_path / "none.json")])
        with pytest.raises(SystemExit):
            validate_args(args)

    def test_offline_skips_auth_checks(self, offline_file):
        """Should not require credentials in offline mode"""
        args = _parse(["WS01", "-d", "example.com", "-u", "alice", "--offline", str(offline_file)])
        validate_args(args)

    @pytest.mark.parametrize("secret", [["-p", "pw"], ["--hashes", "aa:bb"]])
    def test_secret_without_username(self, secret, capsys):
        """Should refuse a password or hashes without a username"""
        with pytest.raises(SystemExit) as exc_info:
            validate_args(_parse(["WS01", "-d", "example.com", *secret]))
        assert exc_info.value.code == 1
        assert "need a username" in capsys.readouterr().out
