"""Authenticator plugins that produce the certbot challenge arguments."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from certbotmanager.config import Certificate, Globals
from certbotmanager.resolve import resolve_optional, resolve_string

log = logging.getLogger(__name__)


class AuthenticatorError(Exception):
    """Raised when an authenticator is unknown or misconfigured."""


class Authenticator(ABC):
    """A certbot challenge method."""

    @abstractmethod
    def build_args(self, cert: Certificate, globals_: Globals) -> list[str]:
        """Return the certbot arguments specific to this authenticator."""


class WebrootAuthenticator(Authenticator):
    """HTTP challenge served from a webroot directory."""

    def build_args(self, cert: Certificate, globals_: Globals) -> list[str]:
        webroot_path = resolve_string(cert.webroot_path, globals_.webroot_path)
        if not webroot_path:
            raise AuthenticatorError(
                "authenticator 'webroot' requires the webroot_path to be specified"
            )
        return ["--webroot", "-w", webroot_path]


def _propagation_args(cert: Certificate, globals_: Globals, name: str) -> list[str]:
    seconds = resolve_optional(cert.dns_propagation_seconds, globals_.dns_propagation_seconds)
    if seconds is None:
        raise AuthenticatorError(
            f"authenticator '{name}' requires the dns_propagation_seconds to be specified"
        )
    if seconds > 0:
        return [f"--{name}-propagation-seconds", str(seconds)]
    return []


class CloudflareAuthenticator(Authenticator):
    """DNS challenge through Cloudflare."""

    def build_args(self, cert: Certificate, globals_: Globals) -> list[str]:
        credentials_path = resolve_string(
            cert.cloudflare_credentials_path, globals_.cloudflare_credentials_path
        )
        if not credentials_path:
            raise AuthenticatorError(
                "authenticator 'dns-cloudflare' requires the "
                "cloudflare_credentials_path to be specified"
            )
        args = [
            "--authenticator",
            "dns-cloudflare",
            "--dns-cloudflare-credentials",
            credentials_path,
        ]
        return args + _propagation_args(cert, globals_, "dns-cloudflare")


class DuckDNSAuthenticator(Authenticator):
    """DNS challenge through DuckDNS."""

    def build_args(self, cert: Certificate, globals_: Globals) -> list[str]:
        token = resolve_string(cert.duckdns_token, globals_.duckdns_token)
        if not token:
            raise AuthenticatorError(
                "authenticator 'dns-duckdns' requires the duckdns_token to be specified"
            )
        args = ["--authenticator", "dns-duckdns", "--dns-duckdns-token", token]
        return args + _propagation_args(cert, globals_, "dns-duckdns")


_registry: dict[str, Authenticator] = {}


def register(name: str, plugin: Authenticator) -> None:
    """Register a plugin under a case-insensitive name, replacing any earlier one."""
    normalized = name.lower()
    if normalized in _registry:
        log.warning(
            "Authenticator plugin '%s' is already registered. Overwriting.", normalized
        )
    _registry[normalized] = plugin


def get(name: str) -> Authenticator:
    """Return the plugin registered under the name; raise AuthenticatorError if unknown."""
    normalized = name.lower()
    try:
        return _registry[normalized]
    except KeyError:
        known = " ".join(_registry)
        raise AuthenticatorError(
            f"unknown authenticator '{normalized}' requested (known: [{known}])"
        ) from None


register("dns-cloudflare", CloudflareAuthenticator())
register("dns-duckdns", DuckDNSAuthenticator())
register("webroot", WebrootAuthenticator())