"""Sealing and opening of envelope files.

A sealed file is a header (see :mod:`sealbox.security.header`) followed by the
raw ciphertext of the whole input, produced in one streaming pass:

    seal:  header || E(session_key, iv, plaintext)
    open:  read header -> unwrap session key -> D(session_key, iv, rest)

Engines are single-use: one engine instance owns one session key, one cipher
stream and one StreamBuffer, all released when its seal/open call returns.
The file helpers write through a temporary file next to the destination and
only move it into place once the whole operation succeeded.
"""
from __future__ import annotations

import logging
import os
import tempfile
from io import BytesIO
from pathlib import Path
from typing import BinaryIO, Optional, Union

from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey, RSAPublicKey

from sealbox.core.exceptions import CipherStateError, EnvelopeIOError
from .ciphers import MINIMUM_BUFFER_SIZE, CipherSpec, buffer_size, resolve
from .crypto import generate_iv, generate_session_key, unwrap_session_key, wrap_session_key, zeroize
from .header import decode_header, encode_header
from .keys import load_private_key, load_public_key
from .stream import CipherStream, Direction

logger = logging.getLogger(__name__)

SEAL_SUFFIX = "_seal"
OPEN_SUFFIX = "_opened"

PathLike = Union[str, Path]


def _write(sink: BinaryIO, data) -> int:
    if not data:
        return 0
    try:
        sink.write(data)
    except OSError as e:
        raise EnvelopeIOError("Failed to write output.") from e
    return len(data)


def _pump(source: BinaryIO, sink: BinaryIO, stream: CipherStream, size: int) -> int:
    """Run ``source`` through ``stream`` into ``sink``; returns bytes written."""
    buf = bytearray(size)
    view = memoryview(buf)
    written = 0
    try:
        while True:
            try:
                n = source.readinto(buf)
            except OSError as e:
                raise EnvelopeIOError("Failed reading from input.") from e
            if not n:
                break
            written += _write(sink, stream.update(view[:n]))
        written += _write(sink, stream.finalize())
    finally:
        view.release()
        zeroize(buf)
    return written


class SealingEngine:
    """Encrypts one input for one RSA recipient."""

    def __init__(
        self,
        cipher: Union[str, int, CipherSpec],
        public_key: RSAPublicKey,
        min_buffer_size: int = MINIMUM_BUFFER_SIZE,
    ):
        self.spec = resolve(cipher)
        self.public_key = public_key
        self.buffer_size = buffer_size(self.spec.block_size, min_buffer_size)
        self._used = False

    def seal(self, source: BinaryIO, sink: BinaryIO) -> int:
        """Write header and ciphertext for ``source`` to ``sink``.

        Nothing is written until the session key has been wrapped and the
        cipher keyed. Returns the total number of bytes written.
        """
        if self._used:
            raise CipherStateError("SealingEngine instances are single-use")
        self._used = True

        session_key = generate_session_key(self.spec.key_length)
        try:
            iv = generate_iv(self.spec.iv_length)
            wrapped = wrap_session_key(self.public_key, session_key)
            stream = CipherStream(self.spec, Direction.ENCRYPT)
            stream.init(session_key, iv)

            header = encode_header(self.spec.nid, wrapped, iv)
            written = _write(sink, header)
            logger.debug("sealing with %s: header %d bytes, buffer %d bytes",
                         self.spec.name, len(header), self.buffer_size)
            written += _pump(source, sink, stream, self.buffer_size)
        finally:
            zeroize(session_key)
        logger.debug("sealed %d bytes total", written)
        return written


class OpeningEngine:
    """Decrypts sealed input with the recipient's RSA private key."""

    def __init__(self, private_key: RSAPrivateKey, min_buffer_size: int = MINIMUM_BUFFER_SIZE):
        self.private_key = private_key
        self.min_buffer_size = min_buffer_size
        self._used = False

    def open(self, source: BinaryIO, sink: BinaryIO) -> int:
        """Parse the header from ``source`` and write the recovered plaintext to ``sink``."""
        if self._used:
            raise CipherStateError("OpeningEngine instances are single-use")
        self._used = True

        header = decode_header(source)
        spec = header.cipher
        session_key = unwrap_session_key(self.private_key, header.wrapped_key, spec.key_length)
        try:
            stream = CipherStream(spec, Direction.DECRYPT)
            stream.init(session_key, header.iv)
            size = buffer_size(spec.block_size, self.min_buffer_size)
            logger.debug("opening %s envelope: header %d bytes", spec.name, header.size)
            written = _pump(source, sink, stream, size)
        finally:
            zeroize(session_key)
        logger.debug("opened %d plaintext bytes", written)
        return written


def seal_stream(cipher, public_key: RSAPublicKey, source: BinaryIO, sink: BinaryIO) -> int:
    return SealingEngine(cipher, public_key).seal(source, sink)


def open_stream(private_key: RSAPrivateKey, source: BinaryIO, sink: BinaryIO) -> int:
    return OpeningEngine(private_key).open(source, sink)


def seal_bytes(cipher, public_key: RSAPublicKey, data: bytes) -> bytes:
    out = BytesIO()
    seal_stream(cipher, public_key, BytesIO(data), out)
    return out.getvalue()


def open_bytes(private_key: RSAPrivateKey, data: bytes) -> bytes:
    out = BytesIO()
    open_stream(private_key, BytesIO(data), out)
    return out.getvalue()


def _write_atomically(in_path: Path, out_path: Path, run) -> None:
    """Open ``in_path``, call ``run(source, sink)`` on a temp file and rename it to ``out_path``.

    The temp file is removed on every failure, so a failed call never leaves
    partial output behind.
    """
    try:
        source = open(in_path, "rb")
    except OSError as e:
        raise EnvelopeIOError(f"Could not open input file: {in_path}") from e

    with source:
        try:
            tmpf = tempfile.NamedTemporaryFile(
                delete=False, dir=out_path.parent, prefix=f".{out_path.name}.", suffix=".tmp"
            )
        except OSError as e:
            raise EnvelopeIOError(f"Could not create output file: {out_path}") from e
        tmp_path = Path(tmpf.name)
        try:
            with tmpf:
                run(source, tmpf)
            os.replace(tmp_path, out_path)
        except OSError as e:
            tmp_path.unlink(missing_ok=True)
            raise EnvelopeIOError(f"Failed to write output file: {out_path}") from e
        except BaseException:
            tmp_path.unlink(missing_ok=True)
            raise


def seal_file(
    public_key: Union[PathLike, RSAPublicKey],
    input_path: PathLike,
    cipher: Union[str, int, CipherSpec],
    output_path: Optional[PathLike] = None,
) -> Path:
    """Seal ``input_path`` for the holder of ``public_key``.

    The cipher and the key are checked before any output is created. The
    result goes to ``output_path`` or ``<input>_seal``; its path is returned.
    """
    in_path = Path(input_path).expanduser()
    out_path = Path(output_path).expanduser() if output_path else in_path.with_name(in_path.name + SEAL_SUFFIX)

    spec = resolve(cipher)
    if not isinstance(public_key, RSAPublicKey):
        public_key = load_public_key(public_key)

    engine = SealingEngine(spec, public_key)
    _write_atomically(in_path, out_path, engine.seal)
    logger.info("sealed %s -> %s (%s)", in_path, out_path, spec.name)
    return out_path


def open_file(
    private_key: Union[PathLike, RSAPrivateKey],
    sealed_path: PathLike,
    output_path: Optional[PathLike] = None,
    passphrase: Optional[Union[str, bytes]] = None,
) -> Path:
    """Open ``sealed_path`` with ``private_key``; output goes to ``<sealed>_opened`` by default."""
    in_path = Path(sealed_path).expanduser()
    out_path = Path(output_path).expanduser() if output_path else in_path.with_name(in_path.name + OPEN_SUFFIX)

    if not isinstance(private_key, RSAPrivateKey):
        private_key = load_private_key(private_key, passphrase=passphrase)

    engine = OpeningEngine(private_key)
    _write_atomically(in_path, out_path, engine.open)
    logger.info("opened %s -> %s", in_path, out_path)
    return out_path
