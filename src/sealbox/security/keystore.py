"""OS keystore integration using keyring for private key passphrases.

Encrypted PEM private keys need a passphrase on every open. This module keeps
that passphrase under a service/account pair in the OS keystore so the CLI
can fetch it instead of prompting. Use this only for opt-in convenience
storage; do not assume keyring provides hardware-backed security on all
platforms.
"""
from typing import Optional

try:
    import keyring
    from keyring.errors import KeyringError, PasswordDeleteError
except ImportError:
    keyring = None
    KeyringError = PasswordDeleteError = None

DEFAULT_SERVICE = "sealbox"


def _require_keyring():
    if keyring is None:
        raise RuntimeError("keyring package is not available; install keyring to use keystore features")


def save_passphrase(account: str, passphrase: str, service: str = DEFAULT_SERVICE) -> None:
    """Persist the passphrase for the key known as ``account``."""
    _require_keyring()
    try:
        keyring.set_password(service, account, passphrase)
    except KeyringError as e:
        raise RuntimeError(f"keyring backend failed to store passphrase: {e}") from e


def load_passphrase(account: str, service: str = DEFAULT_SERVICE) -> Optional[str]:
    """Return the stored passphrase, or None if there is none."""
    _require_keyring()
    try:
        return keyring.get_password(service, account)
    except KeyringError as e:
        raise RuntimeError(f"keyring backend failed to read passphrase: {e}") from e


def delete_passphrase(account: str, service: str = DEFAULT_SERVICE) -> bool:
    """Remove a stored passphrase; returns False if nothing was stored."""
    _require_keyring()
    try:
        keyring.delete_password(service, account)
    except PasswordDeleteError:
        return False
    except KeyringError as e:
        raise RuntimeError(f"keyring backend failed to delete passphrase: {e}") from e
    return True


def assess_keyring_backend() -> tuple[bool, str]:
    """Return (is_secure, message) describing the current keyring backend.

    Heuristics are used because the `keyring` package exposes different backends
    across platforms. If `keyring` is not available this returns (False, reason).
    """
    if keyring is None:
        return False, "keyring package is not installed"

    try:
        backend = keyring.get_keyring()
    except Exception as e:
        return False, f"failed to get keyring backend: {e}"

    name = backend.__class__.__name__
    priority = getattr(backend, "priority", None)

    insecure_indicators = ("Plaintext", "Uncrypted", "Simple", "File", "Fail", "Null")
    if any(tok in name for tok in insecure_indicators):
        return False, f"insecure backend detected: {name}"

    if priority is not None and priority <= 0:
        return False, f"no suitable secure keyring backend available (priority={priority}, backend={name})"

    if "Win" in name or "Keychain" in name or "SecretService" in name or "KWallet" in name:
        return True, f"backend looks acceptable: {name} (priority={priority})"

    return True, f"unknown backend '{name}', treat with caution (priority={priority})"
