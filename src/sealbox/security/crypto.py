"""Session key generation and RSA key transport.

A fresh session key is generated for every seal and wrapped with RSA-OAEP
(MGF1 + SHA-256) under the recipient's public key. Keys are handed around as
``bytearray`` so they can be overwritten with :func:`zeroize` once the
envelope operation is over.
"""
import os

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey, RSAPublicKey

from sealbox.core.exceptions import EncryptionError, KeyUnwrapError


def _oaep() -> padding.OAEP:
    return padding.OAEP(
        mgf=padding.MGF1(algorithm=hashes.SHA256()),
        algorithm=hashes.SHA256(),
        label=None,
    )


def generate_session_key(length: int) -> bytearray:
    return bytearray(os.urandom(length))


def generate_iv(length: int) -> bytes:
    if length <= 0:
        return b""
    return os.urandom(length)


def wrap_session_key(public_key: RSAPublicKey, session_key: bytearray) -> bytes:
    try:
        return public_key.encrypt(bytes(session_key), _oaep())
    except ValueError as e:
        # key too small for OAEP over this session key length
        raise EncryptionError("Failed to wrap session key.") from e


def unwrap_session_key(private_key: RSAPrivateKey, wrapped: bytes, expected_length: int) -> bytearray:
    """Recover the session key, raising :class:`KeyUnwrapError` on any failure.

    A wrong private key, a corrupted wrapped key and a key of the wrong size
    all give the same error message.
    """
    try:
        key = bytearray(private_key.decrypt(wrapped, _oaep()))
    except ValueError as e:
        raise KeyUnwrapError("Failed to unwrap session key.") from e
    if len(key) != expected_length:
        zeroize(key)
        raise KeyUnwrapError("Failed to unwrap session key.")
    return key


def zeroize(buf) -> None:
    """Overwrite a mutable buffer in place (best-effort)."""
    if buf is None or isinstance(buf, bytes):
        return
    for i in range(len(buf)):
        buf[i] = 0
