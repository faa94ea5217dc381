"""Running certbot: path validation, initial requests and renewals."""

from __future__ import annotations

import logging
import os
import shutil
import stat
import subprocess
from typing import NoReturn

from certbotmanager.builder import ArgsBuilder, BuildError
from certbotmanager.config import Config

log = logging.getLogger(__name__)


class CertbotPathError(Exception):
    """Raised when the certbot executable cannot be found or is not executable."""


class CommandError(Exception):
    """Raised when a command cannot be started or exits unsuccessfully."""

    def __init__(self, message: str, exit_code: int) -> None:
        super().__init__(message)
        self.exit_code = exit_code


def validate_certbot_path(potential_path: str) -> str:
    """Return the resolved path of the certbot executable; raise CertbotPathError if unusable."""
    if not potential_path:
        raise CertbotPathError("certbot path configuration is empty")

    resolved = shutil.which(potential_path)
    if resolved is None:
        try:
            os.stat(potential_path)
        except FileNotFoundError:
            raise CertbotPathError(
                f"certbot executable '{potential_path}' not found in PATH and does not exist"
            ) from None
        except OSError as exc:
            raise CertbotPathError(
                f"error checking certbot path '{potential_path}': {exc}"
            ) from exc
        raise CertbotPathError(f"certbot executable '{potential_path}' not found in PATH")

    try:
        mode = os.stat(resolved).st_mode
    except OSError as exc:
        raise CertbotPathError(
            f"could not stat resolved certbot path '{resolved}': {exc}"
        ) from exc
    if not mode & stat.S_IXUSR:
        raise CertbotPathError(f"resolved certbot path '{resolved}' is not executable")

    log.info("Validated certbot executable: %s", resolved)
    return resolved


def _fail(reason: str, stderr: str, exit_code: int) -> NoReturn:
    message = f"Command failed with error: {reason}"
    if stderr:
        message += f"\nStderr:\n---\n{stderr}\n---"
    log.error("%s (Exit Code: %d)", message, exit_code)
    raise CommandError(f"command execution failed (exit code {exit_code}): {reason}", exit_code)


def run_command(executable_path: str, *args: str) -> None:
    """Run the executable with the arguments; raise CommandError if it fails."""
    log.debug("Running command: %s %s", executable_path, " ".join(args))
    try:
        completed = subprocess.run(
            [executable_path, *args],
            capture_output=True,
            text=True,
            errors="replace",
            check=False,
        )
    except OSError as exc:
        _fail(str(exc), "", -1)

    stdout = (completed.stdout or "").strip()
    stderr = (completed.stderr or "").strip()
    if stdout:
        log.debug("Command stdout:\n---\n%s\n---", stdout)

    code = completed.returncode
    if code != 0:
        if code > 0:
            _fail(f"exit status {code}", stderr, code)
        _fail(f"terminated by signal {-code}", stderr, -1)

    log.info("Command finished successfully (Exit Code: 0)")


def request_certificates(config: Config, certbot_path: str) -> bool:
    """Request every configured certificate; return whether all requests succeeded."""
    log.info("--- Initial Certificate Processing ---")
    all_ok = True
    for number, cert in enumerate(config.certificates, start=1):
        domains = "[" + " ".join(cert.domains) + "]"
        log.info("Processing certificate request %d for domains: %s", number, domains)
        try:
            args = ArgsBuilder(cert, config.globals).build()
        except BuildError as exc:
            log.error(
                "Error building arguments for cert #%d (%s): %s. Skipping.", number, domains, exc
            )
            all_ok = False
            continue
        try:
            run_command(certbot_path, *args)
        except CommandError as exc:
            log.error("Failed initial certonly run for cert %d (%s): %s", number, domains, exc)
            all_ok = False
    return all_ok


def renew_certificates(certbot_path: str) -> None:
    """Run 'certbot renew --quiet'; raise CommandError if it fails."""
    log.info("Checking for certificate renewals...")
    try:
        run_command(certbot_path, "renew", "--quiet")
    except CommandError as exc:
        log.info("Certbot renew command finished with potential issue: %s", exc)
        raise
    log.info("Certbot renew command finished.")