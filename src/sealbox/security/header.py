"""Sealed file header codec.

Header layout (binary, all integers little-endian signed 32-bit):
- 4 bytes: cipher id (OpenSSL NID, see :mod:`sealbox.security.ciphers`)
- 4 bytes: len_wrapped
- N bytes: wrapped session key
- L bytes: IV, only when the cipher's IV length L is > 0

The IV length is never stored; it is re-derived from the cipher id.
The ciphertext follows the header directly and runs to end of file.
"""
from __future__ import annotations

import io
import struct
from dataclasses import dataclass
from typing import BinaryIO, Tuple

from sealbox.core.exceptions import EnvelopeIOError, InvalidCipherError, MalformedHeaderError
from .ciphers import CipherSpec, resolve


INT_FORMAT = "<i"
INT_SIZE = struct.calcsize(INT_FORMAT)
# wrapped keys come from RSA moduli well below this; larger values are corruption
MAX_WRAPPED_KEY_LENGTH = 10000


@dataclass(frozen=True)
class EnvelopeHeader:
    cipher_id: int
    wrapped_key: bytes
    iv: bytes = b""

    @property
    def wrapped_key_length(self) -> int:
        return len(self.wrapped_key)

    @property
    def cipher(self) -> CipherSpec:
        return resolve(self.cipher_id)

    @property
    def size(self) -> int:
        return 2 * INT_SIZE + len(self.wrapped_key) + len(self.iv)


def encode_header(cipher_id: int, wrapped_key: bytes, iv: bytes = b"") -> bytes:
    """Serialize a header; ``iv`` must match the cipher's IV length exactly."""
    spec = resolve(cipher_id)
    if not 0 < len(wrapped_key) < MAX_WRAPPED_KEY_LENGTH:
        raise ValueError(f"wrapped key length out of range: {len(wrapped_key)}")
    if len(iv) != spec.iv_length:
        raise ValueError(f"{spec.name} needs a {spec.iv_length}-byte IV, got {len(iv)}")

    header = bytearray()
    header += struct.pack(INT_FORMAT, spec.nid)
    header += struct.pack(INT_FORMAT, len(wrapped_key))
    header += wrapped_key
    if spec.iv_length > 0:
        header += iv
    return bytes(header)


def _read_exact(stream: BinaryIO, n: int, what: str) -> bytes:
    # raw streams and pipes may return short reads before EOF
    data = bytearray()
    while len(data) < n:
        try:
            chunk = stream.read(n - len(data))
        except OSError as e:
            raise EnvelopeIOError(f"Failed to read sealed file ({what}).") from e
        if not chunk:
            raise MalformedHeaderError(f"Provided sealed file is invalid (truncated {what}).")
        data += chunk
    return bytes(data)


def decode_header(stream: BinaryIO) -> EnvelopeHeader:
    """Read exactly one header from ``stream``, leaving it at the first ciphertext byte."""
    (cipher_id,) = struct.unpack(INT_FORMAT, _read_exact(stream, INT_SIZE, "cipher id"))
    try:
        spec = resolve(cipher_id)
    except InvalidCipherError as e:
        raise MalformedHeaderError("Provided sealed file is invalid (unknown cipher).") from e

    (wrapped_len,) = struct.unpack(INT_FORMAT, _read_exact(stream, INT_SIZE, "key length"))
    if wrapped_len <= 0 or wrapped_len >= MAX_WRAPPED_KEY_LENGTH:
        raise MalformedHeaderError("Provided sealed file is invalid (key length out of range).")
    wrapped = _read_exact(stream, wrapped_len, "wrapped key")

    iv = b""
    if spec.iv_length > 0:
        iv = _read_exact(stream, spec.iv_length, "IV")
    return EnvelopeHeader(cipher_id=spec.nid, wrapped_key=wrapped, iv=iv)


def parse_header(data: bytes) -> Tuple[EnvelopeHeader, int]:
    """Decode a header from the start of ``data``; returns it with the bytes consumed."""
    buf = io.BytesIO(data)
    header = decode_header(buf)
    return header, buf.tell()
