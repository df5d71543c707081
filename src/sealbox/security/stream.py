"""Streaming symmetric cipher with an explicit lifecycle.

A :class:`CipherStream` goes ``UNINITIALIZED -> STREAMING -> FINALIZED``.
Any library failure moves it to ``FAILED``. Calls made in the wrong state
raise :class:`CipherStateError` instead of touching the cipher context.

Padded modes (ECB/CBC) run PKCS#7 around the raw cipher: on encryption the
padder buffers partial blocks, on decryption the unpadder holds back the last
block until :meth:`CipherStream.finalize` can validate it.
"""
from __future__ import annotations

from enum import Enum

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher

from sealbox.core.exceptions import CipherStateError, DecryptionError, EncryptionError
from sealbox.security.ciphers import CipherSpec


class StreamState(Enum):
    UNINITIALIZED = "uninitialized"
    STREAMING = "streaming"
    FINALIZED = "finalized"
    FAILED = "failed"


class Direction(Enum):
    ENCRYPT = "encrypt"
    DECRYPT = "decrypt"


class CipherStream:
    def __init__(self, spec: CipherSpec, direction: Direction):
        self.spec = spec
        self.direction = direction
        self.state = StreamState.UNINITIALIZED
        self._ctx = None
        self._pad = None

    @property
    def _error(self):
        return EncryptionError if self.direction is Direction.ENCRYPT else DecryptionError

    def _fail(self, message: str):
        self.state = StreamState.FAILED
        self._ctx = None
        self._pad = None
        return self._error(message)

    def _require(self, state: StreamState, op: str) -> None:
        if self.state is not state:
            raise CipherStateError(f"cannot {op} a cipher stream in state {self.state.value}")

    def init(self, key, iv: bytes) -> None:
        """Key the cipher; legal once, before any update."""
        self._require(StreamState.UNINITIALIZED, "init")
        try:
            algorithm, mode = self.spec.build(key, iv)
            cipher = Cipher(algorithm, mode)
            if self.direction is Direction.ENCRYPT:
                self._ctx = cipher.encryptor()
                if self.spec.padded:
                    self._pad = padding.PKCS7(self.spec.block_size * 8).padder()
            else:
                self._ctx = cipher.decryptor()
                if self.spec.padded:
                    self._pad = padding.PKCS7(self.spec.block_size * 8).unpadder()
        except (ValueError, TypeError, UnsupportedAlgorithm) as e:
            raise self._fail(f"Failed to initialize {self.spec.name} cipher.") from e
        self.state = StreamState.STREAMING

    def update(self, data: bytes) -> bytes:
        """Feed ``data``; returns whatever output the cipher released (possibly empty)."""
        self._require(StreamState.STREAMING, "update")
        try:
            if self.direction is Direction.ENCRYPT:
                if self._pad is not None:
                    data = self._pad.update(data)
                return self._ctx.update(data)
            out = self._ctx.update(data)
            if self._pad is not None:
                out = self._pad.update(out)
            return out
        except ValueError as e:
            raise self._fail(f"Failed to {self.direction.value}.") from e

    def finalize(self) -> bytes:
        """Flush the final block (padding it or validating its padding)."""
        self._require(StreamState.STREAMING, "finalize")
        try:
            if self.direction is Direction.ENCRYPT:
                tail = b""
                if self._pad is not None:
                    tail = self._ctx.update(self._pad.finalize())
                out = tail + self._ctx.finalize()
            else:
                out = self._ctx.finalize()
                if self._pad is not None:
                    out = self._pad.update(out) + self._pad.finalize()
        except ValueError as e:
            raise self._fail(f"Failed to {self.direction.value}.") from e
        self.state = StreamState.FINALIZED
        self._ctx = None
        self._pad = None
        return out
