"""PEM key loading for envelope recipients.

Only RSA keys can transport a session key, so anything else is rejected at
load time rather than failing later inside the seal.
"""
from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey, RSAPublicKey

from sealbox.core.exceptions import KeyLoadError


def _read_pem(path: Union[str, Path], kind: str) -> bytes:
    p = Path(path).expanduser()
    try:
        return p.read_bytes()
    except OSError as e:
        raise KeyLoadError(f"Could not open file with {kind} key: {p}") from e


def load_public_key(path: Union[str, Path]) -> RSAPublicKey:
    """Load an RSA public key (``BEGIN PUBLIC KEY``) from ``path``."""
    data = _read_pem(path, "public")
    try:
        key = serialization.load_pem_public_key(data)
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise KeyLoadError("Could not read public key.") from e
    if not isinstance(key, RSAPublicKey):
        raise KeyLoadError("Public key is not an RSA key.")
    return key


def load_private_key(
    path: Union[str, Path], passphrase: Optional[Union[str, bytes]] = None
) -> RSAPrivateKey:
    """Load an RSA private key from ``path``.

    ``passphrase`` is required for encrypted PEM files and must be omitted for
    unencrypted ones; a mismatch either way is reported as :class:`KeyLoadError`.
    """
    data = _read_pem(path, "private")
    if isinstance(passphrase, str):
        passphrase = passphrase.encode("utf-8")
    try:
        key = serialization.load_pem_private_key(data, password=passphrase or None)
    except TypeError as e:
        # raised for a missing passphrase on an encrypted key (and vice versa)
        raise KeyLoadError(f"Could not read private key: {e}") from e
    except (ValueError, UnsupportedAlgorithm) as e:
        raise KeyLoadError("Could not read private key.") from e
    if not isinstance(key, RSAPrivateKey):
        raise KeyLoadError("Private key is not an RSA key.")
    return key
