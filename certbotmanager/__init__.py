"""Obtain certificates with certbot and renew them on a cron schedule."""

__version__ = "0.1.0"