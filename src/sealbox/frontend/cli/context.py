"""Small helper to build the runtime settings for the SealBox CLI."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
import logging
import os

from sealbox.security.keystore import DEFAULT_SERVICE, load_passphrase


@dataclass
class CliContext:
    """Settings resolved from flags and the environment."""

    log_level: int = logging.WARNING
    passphrase: Optional[str] = None
    keyring_service: str = DEFAULT_SERVICE


def _parse_level(value: Optional[str]) -> int:
    # Accept level names ("debug") or numbers ("10"); fall back to WARNING.
    if not value:
        return logging.WARNING
    value = value.strip()
    if value.isdigit():
        return int(value)
    level = logging.getLevelName(value.upper())
    return level if isinstance(level, int) else logging.WARNING


def build_context(
    verbose: int = 0,
    keyring_account: Optional[str] = None,
) -> CliContext:
    """
    Resolve CLI settings.

    Environment variables:

    - ``SEALBOX_LOG_LEVEL``: base log level (name or number), default WARNING.
      Each ``-v`` on the command line lowers it one step (INFO, then DEBUG).
    - ``SEALBOX_KEY_PASSPHRASE``: passphrase for an encrypted private key.
    - ``SEALBOX_KEYRING_SERVICE``: keyring service name, default ``sealbox``.

    If ``keyring_account`` is given, the passphrase is read from the OS
    keystore instead and overrides ``SEALBOX_KEY_PASSPHRASE``.
    """
    level = _parse_level(os.getenv("SEALBOX_LOG_LEVEL"))
    if verbose:
        level = max(logging.DEBUG, min(level, logging.WARNING) - 10 * verbose)

    service = os.getenv("SEALBOX_KEYRING_SERVICE") or DEFAULT_SERVICE
    passphrase = os.getenv("SEALBOX_KEY_PASSPHRASE") or None
    if keyring_account:
        stored = load_passphrase(keyring_account, service=service)
        if stored is None:
            raise RuntimeError(f"No passphrase stored in keyring for '{keyring_account}'")
        passphrase = stored

    return CliContext(log_level=level, passphrase=passphrase, keyring_service=service)
