"""Generators for the certbot command-line flags shared by every authenticator."""

from __future__ import annotations

from abc import ABC, abstractmethod

from certbotmanager.config import Certificate, Globals
from certbotmanager.resolve import resolve_optional, resolve_string


class FlagError(Exception):
    """Raised when a flag cannot be generated from the configuration."""


class FlagGenerator(ABC):
    """Produces command-line arguments for one certbot flag."""

    @abstractmethod
    def generate_args(self, cert: Certificate, globals_: Globals) -> list[str]:
        """Return the arguments for this flag; an empty list when it does not apply."""


class EmailFlag(FlagGenerator):
    """Adds '--email'; an e-mail address is required."""

    def generate_args(self, cert: Certificate, globals_: Globals) -> list[str]:
        email = resolve_string(cert.email, globals_.email)
        if not email:
            raise FlagError("email is required but was not resolved from configuration")
        return ["--email", email]


class AgreeTosFlag(FlagGenerator):
    """Always adds '--agree-tos', since unattended runs require it."""

    def generate_args(self, cert: Certificate, globals_: Globals) -> list[str]:
        return ["--agree-tos"]


class NonInteractiveFlag(FlagGenerator):
    """Always adds '--non-interactive', since unattended runs require it."""

    def generate_args(self, cert: Certificate, globals_: Globals) -> list[str]:
        return ["--non-interactive"]


class StagingFlag(FlagGenerator):
    """Adds '--staging' when staging is enabled."""

    def generate_args(self, cert: Certificate, globals_: Globals) -> list[str]:
        if resolve_optional(cert.staging, globals_.staging):
            return ["--staging"]
        return []


class NoEffEmailFlag(FlagGenerator):
    """Adds '--no-eff-email' when enabled."""

    def generate_args(self, cert: Certificate, globals_: Globals) -> list[str]:
        if resolve_optional(cert.no_eff_email, globals_.no_eff_email):
            return ["--no-eff-email"]
        return []


class KeyTypeFlag(FlagGenerator):
    """Adds '--key-type' when a key type is configured."""

    def generate_args(self, cert: Certificate, globals_: Globals) -> list[str]:
        key_type = resolve_string(cert.key_type, globals_.key_type)
        if key_type:
            return ["--key-type", key_type]
        return []


class CustomArgsFlag(FlagGenerator):
    """Passes the certificate's own extra arguments through as a single argument."""

    def generate_args(self, cert: Certificate, globals_: Globals) -> list[str]:
        if cert.args:
            return [cert.args]
        return []


class InitialRunFlags(FlagGenerator):
    """Adds '--force-renewal' when forced, otherwise '--keep-until-expiring'."""

    def generate_args(self, cert: Certificate, globals_: Globals) -> list[str]:
        if resolve_optional(cert.initial_force_renewal, globals_.initial_force_renewal):
            return ["--force-renewal"]
        return ["--keep-until-expiring"]


_registry: list[FlagGenerator] = []


def register(generator: FlagGenerator) -> None:
    """Add a flag generator; generators run in the order they were registered."""
    _registry.append(generator)


def get_all() -> list[FlagGenerator]:
    """Return the registered flag generators in order."""
    return list(_registry)


for _generator in (
    EmailFlag(),
    AgreeTosFlag(),
    NonInteractiveFlag(),
    StagingFlag(),
    NoEffEmailFlag(),
    KeyTypeFlag(),
    CustomArgsFlag(),
    InitialRunFlags(),
):
    register(_generator)