"""Resolution of settings given per certificate with a global fallback."""

from __future__ import annotations

from typing import TYPE_CHECKING, TypeVar

if TYPE_CHECKING:
    from certbotmanager.config import Certificate, Globals

T = TypeVar("T")


def resolve_string(cert_value: str, global_value: str) -> str:
    """Return the certificate value unless it is empty, else the global one."""
    return cert_value if cert_value != "" else global_value


def resolve_optional(cert_value: T | None, global_value: T | None) -> T | None:
    """Return the certificate value unless it is unset, else the global one."""
    return cert_value if cert_value is not None else global_value


def resolve_authenticator_name(cert: Certificate, globals_: Globals) -> str:
    """Return the authenticator to use; raise ValueError if none is configured."""
    authenticator = resolve_string(cert.authenticator, globals_.authenticator)
    if authenticator:
        return authenticator
    raise ValueError("no authenticator specified in config")