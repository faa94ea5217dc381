import pytest

from certbotmanager.builder import ArgsBuilder, BuildError, generate_cmd, is_valid_command
from certbotmanager.config import DEFAULTS, Certificate, Globals


def _globals(**overrides):
    values = dict(
        email="admin@example.com",
        staging=True,
        no_eff_email=True,
        cmd="certonly",
        authenticator="webroot",
        webroot_path="/var/www",
        renewal_cron="0 0 3 * * *",
    )
    values.update(overrides)
    return Globals(**values)


@pytest.mark.parametrize("cmd", ["certonly", "run"])
def test_valid_commands(cmd):
    assert is_valid_command(cmd) is True


@pytest.mark.parametrize("cmd", ["renew", "", "CERTONLY"])
def test_invalid_commands(cmd):
    assert is_valid_command(cmd) is False


def test_generate_cmd_default_when_unset():
    assert generate_cmd(Certificate(), Globals()) == DEFAULTS.cmd


def test_generate_cmd_certificate_overrides():
    assert generate_cmd(Certificate(cmd="run"), Globals(cmd="certonly")) == "run"


def test_generate_cmd_unknown():
    with pytest.raises(BuildError, match="unknown cmd 'renew'"):
        generate_cmd(Certificate(cmd="renew"), Globals())


def test_full_webroot_build():
    cert = Certificate(domains=["example.com", "www.example.com"])
    args = ArgsBuilder(cert, _globals()).build()
    assert args == [
        "certonly",
        "--email",
        "admin@example.com",
        "--agree-tos",
        "--non-interactive",
        "--staging",
        "--no-eff-email",
        "--keep-until-expiring",
        "--webroot",
        "-w",
        "/var/www",
        "-d",
        "example.com",
        "-d",
        "www.example.com",
    ]


def test_build_with_overrides_and_custom_args():
    cert = Certificate(
        domains=["example.com"],
        cmd="run",
        staging=False,
        key_type="ecdsa",
        args="--dry-run",
        initial_force_renewal=True,
    )
    args = ArgsBuilder(cert, _globals()).build()
    assert args[0] == "run"
    assert "--staging" not in args
    assert args[args.index("--key-type") + 1] == "ecdsa"
    assert args.index("--dry-run") < args.index("--force-renewal")
    assert "--keep-until-expiring" not in args
    assert args[-2:] == ["-d", "example.com"]


def test_build_with_dns_authenticator():
    cert = Certificate(domains=["example.com"], authenticator="dns-duckdns", duckdns_token="token")
    args = ArgsBuilder(cert, _globals(dns_propagation_seconds=0)).build()
    tail = args[args.index("--authenticator"):]
    assert tail == [
        "--authenticator",
        "dns-duckdns",
        "--dns-duckdns-token",
        "token",
        "-d",
        "example.com",
    ]
    assert "--webroot" not in args


def test_build_requires_domains():
    with pytest.raises(BuildError, match="at least one domain is required"):
        ArgsBuilder(Certificate(), _globals()).build()


def test_build_unknown_cmd():
    with pytest.raises(BuildError, match="error from cmd generator bogus"):
        ArgsBuilder(Certificate(domains=["example.com"], cmd="bogus"), _globals()).build()


def test_build_missing_email_names_generator():
    with pytest.raises(BuildError, match="error from flag generator EmailFlag"):
        ArgsBuilder(Certificate(domains=["example.com"]), _globals(email="")).build()


def test_build_missing_authenticator():
    with pytest.raises(BuildError, match="missing authenticator name"):
        ArgsBuilder(Certificate(domains=["example.com"]), _globals(authenticator="")).build()


def test_build_unknown_authenticator():
    cert = Certificate(domains=["example.com"], authenticator="manual")
    with pytest.raises(BuildError, match="failed to get authenticator plugin for 'manual'"):
        ArgsBuilder(cert, _globals()).build()


def test_build_authenticator_misconfigured():
    with pytest.raises(BuildError, match="failed to build args for authenticator 'webroot'"):
        ArgsBuilder(Certificate(domains=["example.com"]), _globals(webroot_path="")).build()


def test_build_error_mentions_domains():
    cert = Certificate(domains=["a.example.com", "b.example.com"], authenticator="manual")
    with pytest.raises(BuildError) as info:
        ArgsBuilder(cert, _globals()).build()
    assert "a.example.com" in str(info.value)
    assert "b.example.com" in str(info.value)


def test_each_domain_preceded_by_d():
    domains = ["one.example.com", "two.example.com", "three.example.com"]
    args = ArgsBuilder(Certificate(domains=domains), _globals()).build()
    tail = args[-2 * len(domains):]
    assert tail[0::2] == ["-d"] * len(domains)
    assert tail[1::2] == domains