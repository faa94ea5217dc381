import pytest

from certbotmanager import flags
from certbotmanager.config import Certificate, Globals
from certbotmanager.flags import (
    AgreeTosFlag,
    CustomArgsFlag,
    EmailFlag,
    FlagError,
    FlagGenerator,
    InitialRunFlags,
    KeyTypeFlag,
    NoEffEmailFlag,
    NonInteractiveFlag,
    StagingFlag,
)


def test_email_from_certificate_overrides_global():
    cert = Certificate(email="cert@example.com")
    globals_ = Globals(email="global@example.com")
    assert EmailFlag().generate_args(cert, globals_) == ["--email", "cert@example.com"]


def test_email_falls_back_to_global():
    assert EmailFlag().generate_args(Certificate(), Globals(email="global@example.com")) == [
        "--email",
        "global@example.com",
    ]


def test_email_missing_raises():
    with pytest.raises(FlagError, match="email is required"):
        EmailFlag().generate_args(Certificate(), Globals())


def test_forced_flags_always_present():
    assert AgreeTosFlag().generate_args(Certificate(), Globals()) == ["--agree-tos"]
    assert NonInteractiveFlag().generate_args(Certificate(), Globals()) == ["--non-interactive"]


@pytest.mark.parametrize(
    ("cert_value", "global_value", "expected"),
    [
        (None, None, []),
        (None, True, ["--staging"]),
        (False, True, []),
        (True, False, ["--staging"]),
    ],
)
def test_staging(cert_value, global_value, expected):
    cert = Certificate(staging=cert_value)
    globals_ = Globals(staging=global_value)
    assert StagingFlag().generate_args(cert, globals_) == expected


@pytest.mark.parametrize(
    ("cert_value", "global_value", "expected"),
    [
        (None, None, []),
        (None, True, ["--no-eff-email"]),
        (False, True, []),
    ],
)
def test_no_eff_email(cert_value, global_value, expected):
    cert = Certificate(no_eff_email=cert_value)
    globals_ = Globals(no_eff_email=global_value)
    assert NoEffEmailFlag().generate_args(cert, globals_) == expected


def test_key_type():
    assert KeyTypeFlag().generate_args(Certificate(), Globals()) == []
    assert KeyTypeFlag().generate_args(Certificate(key_type="ecdsa"), Globals(key_type="rsa")) == [
        "--key-type",
        "ecdsa",
    ]
    assert KeyTypeFlag().generate_args(Certificate(), Globals(key_type="rsa")) == [
        "--key-type",
        "rsa",
    ]


def test_custom_args_only_from_certificate():
    assert CustomArgsFlag().generate_args(Certificate(), Globals(args="--dry-run")) == []
    assert CustomArgsFlag().generate_args(Certificate(args="--dry-run"), Globals()) == [
        "--dry-run"
    ]


def test_initial_run_flags():
    assert InitialRunFlags().generate_args(Certificate(), Globals()) == ["--keep-until-expiring"]
    assert InitialRunFlags().generate_args(
        Certificate(), Globals(initial_force_renewal=True)
    ) == ["--force-renewal"]
    assert InitialRunFlags().generate_args(
        Certificate(initial_force_renewal=False), Globals(initial_force_renewal=True)
    ) == ["--keep-until-expiring"]


def test_default_registry_order():
    kinds = [type(generator) for generator in flags.get_all()]
    assert kinds == [
        EmailFlag,
        AgreeTosFlag,
        NonInteractiveFlag,
        StagingFlag,
        NoEffEmailFlag,
        KeyTypeFlag,
        CustomArgsFlag,
        InitialRunFlags,
    ]


def test_get_all_returns_copy():
    listed = flags.get_all()
    listed.clear()
    assert len(flags.get_all()) == 8


def test_register_appends(monkeypatch):
    monkeypatch.setattr(flags, "_registry", list(flags.get_all()))

    class Extra(FlagGenerator):
        def generate_args(self, cert, globals_):
            return ["--extra"]

    extra = Extra()
    flags.register(extra)
    assert flags.get_all()[-1] is extra
    assert flags.get_all()[-1].generate_args(Certificate(), Globals()) == ["--extra"]


def test_flag_generator_is_abstract():
    with pytest.raises(TypeError):
        FlagGenerator()