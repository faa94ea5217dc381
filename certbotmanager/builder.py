"""Assembly of the full certbot argument list for one certificate."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from certbotmanager import authenticators, flags
from certbotmanager.config import DEFAULTS, Certificate, Globals
from certbotmanager.resolve import resolve_authenticator_name, resolve_string

COMMANDS = ("certonly", "run")


class BuildError(Exception):
    """Raised when the certbot arguments cannot be built."""


def _format_list(items: Iterable[str]) -> str:
    return "[" + " ".join(items) + "]"


def is_valid_command(cmd: str) -> bool:
    """Return whether cmd is a certbot subcommand this tool supports."""
    return cmd in COMMANDS


def generate_cmd(cert: Certificate, globals_: Globals) -> str:
    """Return the certbot subcommand, defaulting when none is configured."""
    cmd = resolve_string(cert.cmd, globals_.cmd)
    if not cmd:
        return DEFAULTS.cmd
    if not is_valid_command(cmd):
        raise BuildError(f"unknown cmd '{cmd}' (options: 'certonly', 'run')")
    return cmd


@dataclass
class ArgsBuilder:
    """Builds the certbot arguments for one certificate in the context of the globals."""

    cert: Certificate
    globals_: Globals

    def build(self) -> list[str]:
        """Return the argument list; raise BuildError when the configuration is incomplete."""
        cert, globals_ = self.cert, self.globals_
        if not cert.domains:
            raise BuildError("at least one domain is required")
        domains = _format_list(cert.domains)

        try:
            args = [generate_cmd(cert, globals_)]
        except BuildError as exc:
            raise BuildError(
                f"error from cmd generator {cert.cmd} for domains {domains}: {exc}"
            ) from exc

        for generator in flags.get_all():
            try:
                args.extend(generator.generate_args(cert, globals_))
            except flags.FlagError as exc:
                raise BuildError(
                    f"error from flag generator {type(generator).__name__} "
                    f"for domains {domains}: {exc}"
                ) from exc

        try:
            name = resolve_authenticator_name(cert, globals_)
        except ValueError as exc:
            raise BuildError(
                f"missing authenticator name (domains: {domains}): {exc}"
            ) from exc

        try:
            plugin = authenticators.get(name)
        except authenticators.AuthenticatorError as exc:
            raise BuildError(
                f"failed to get authenticator plugin for '{name}' (domains: {domains}): {exc}"
            ) from exc

        try:
            args.extend(plugin.build_args(cert, globals_))
        except authenticators.AuthenticatorError as exc:
            raise BuildError(
                f"failed to build args for authenticator '{name}' (domains: {domains}): {exc}"
            ) from exc

        for domain in cert.domains:
            args.extend(("-d", domain))
        return args