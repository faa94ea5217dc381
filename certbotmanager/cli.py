"""Command-line entry point: request certificates, then renew them on a schedule."""

from __future__ import annotations

import logging
import signal
import sys
import threading
from collections.abc import Sequence

from certbotmanager import config
from certbotmanager.logsetup import setup
from certbotmanager.runner import (
    CertbotPathError,
    CommandError,
    renew_certificates,
    request_certificates,
    validate_certbot_path,
)
from certbotmanager.scheduler import SchedulerError, setup_and_start_scheduler

log = logging.getLogger(__name__)

_SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGTERM)


def _wait_for_shutdown() -> None:
    received = threading.Event()

    def handler(signum: int, frame: object) -> None:
        received.set()

    previous = {signum: signal.signal(signum, handler) for signum in _SHUTDOWN_SIGNALS}
    try:
        while not received.wait(0.5):
            pass
    finally:
        for signum, old in previous.items():
            signal.signal(signum, old)


def main(argv: Sequence[str] | None = None) -> int:
    """Run the certificate manager until SIGINT or SIGTERM; return the exit status."""
    try:
        cfg = config.load(argv)
    except config.ConfigError as exc:
        print(f"Failed to load configuration: {exc}", file=sys.stderr)
        return 1

    setup(cfg.log_level)
    log.info("Starting Certbot Manager...")

    try:
        certbot_path = validate_certbot_path(cfg.certbot_path)
    except CertbotPathError as exc:
        log.critical("Certbot path validation failed: %s", exc)
        return 1

    if not cfg.certificates:
        log.info("No [[certificate]] blocks found in configuration. Nothing to schedule.")
        return 0

    if not request_certificates(cfg, certbot_path):
        log.critical(
            "FATAL: One or more initial certificate requests failed. "
            "Check logs above for details. Application will not start the renewal scheduler."
        )
        return 1

    log.info("Initial certificates processing completed successfully.")

    def renewal_job() -> None:
        log.info("Cron Job: Triggered renewal check...")
        try:
            renew_certificates(certbot_path)
        except CommandError:
            log.warning("Cron Job: Renewal check finished with potential issue.")
        else:
            log.info("Cron Job: Renewal check finished successfully.")

    try:
        scheduler = setup_and_start_scheduler(cfg.globals.renewal_cron, renewal_job)
    except SchedulerError as exc:
        log.critical("Failed to setup and start cron scheduler: %s", exc)
        return 1

    log.info("Certbot Manager running. Renewal checks scheduled via cron. Waiting for signals...")
    _wait_for_shutdown()

    log.info("Shutdown signal received...")
    scheduler.stop()
    log.info("Certbot Manager application stopped.")
    return 0


if __name__ == "__main__":
    sys.exit(main())