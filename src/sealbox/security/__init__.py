"""Security helpers: hybrid RSA + symmetric envelopes for SealBox.

This package provides:
- a registry of symmetric ciphers addressable by name or OpenSSL NID
- PEM key loading for RSA recipients
- session key generation and RSA-OAEP key transport
- the sealed file header codec
- streaming seal/open engines and their file-level helpers
"""

from .ciphers import CipherSpec, resolve, list_ciphers, buffer_size
from .keys import load_public_key, load_private_key
from .crypto import generate_session_key, wrap_session_key, unwrap_session_key
from .header import EnvelopeHeader, encode_header, decode_header, parse_header
from .envelope import (
    SealingEngine,
    OpeningEngine,
    seal_stream,
    open_stream,
    seal_bytes,
    open_bytes,
    seal_file,
    open_file,
)

__all__ = [
    "CipherSpec",
    "resolve",
    "list_ciphers",
    "buffer_size",
    "load_public_key",
    "load_private_key",
    "generate_session_key",
    "wrap_session_key",
    "unwrap_session_key",
    "EnvelopeHeader",
    "encode_header",
    "decode_header",
    "parse_header",
    "SealingEngine",
    "OpeningEngine",
    "seal_stream",
    "open_stream",
    "seal_bytes",
    "open_bytes",
    "seal_file",
    "open_file",
]
