"""
Unit tests for the sealed file header codec.
"""

import io
import os
import struct
import pytest
from sealbox.core.exceptions import EnvelopeIOError, MalformedHeaderError
from sealbox.security.ciphers import resolve
from sealbox.security.header import (
    INT_SIZE,
    MAX_WRAPPED_KEY_LENGTH,
    EnvelopeHeader,
    decode_header,
    encode_header,
    parse_header,
)


WRAPPED = bytes(range(256))


# ==============================================================================
# Tests: encode / decode
# ==============================================================================

@pytest.mark.parametrize("name", ["aes-256-cbc", "aes-128-ecb", "aes-192-ctr", "chacha20"])
def test_encode_decode_preserves_fields(name):
    spec = resolve(name)
    iv = os.urandom(spec.iv_length)
    raw = encode_header(spec.nid, WRAPPED, iv)

    header, consumed = parse_header(raw)
    assert consumed == len(raw) == header.size
    assert header == EnvelopeHeader(cipher_id=spec.nid, wrapped_key=WRAPPED, iv=iv)
    assert header.wrapped_key_length == len(WRAPPED)
    assert header.cipher is spec


def test_layout_is_little_endian_int32():
    iv = b"\x11" * 16
    raw = encode_header(427, b"\xaa\xbb\xcc", iv)
    assert raw[:4] == struct.pack("<i", 427)
    assert raw[4:8] == (3).to_bytes(4, "little")
    assert raw[8:11] == b"\xaa\xbb\xcc"
    assert raw[11:] == iv


def test_no_iv_field_for_ecb():
    raw = encode_header(resolve("aes-256-ecb").nid, WRAPPED)
    assert len(raw) == 2 * INT_SIZE + len(WRAPPED)


def test_encode_rejects_iv_of_wrong_length():
    with pytest.raises(ValueError):
        encode_header(427, WRAPPED, b"\x00" * 8)
    with pytest.raises(ValueError):
        encode_header(resolve("aes-128-ecb").nid, WRAPPED, b"\x00" * 16)


def test_encode_rejects_empty_wrapped_key():
    with pytest.raises(ValueError):
        encode_header(427, b"", b"\x00" * 16)


def test_decode_leaves_stream_at_ciphertext():
    iv = os.urandom(16)
    stream = io.BytesIO(encode_header(427, WRAPPED, iv) + b"CIPHERTEXT")
    decode_header(stream)
    assert stream.read() == b"CIPHERTEXT"


# ==============================================================================
# Tests: malformed input
# ==============================================================================

def _valid() -> bytes:
    return encode_header(427, WRAPPED, b"\x00" * 16)


@pytest.mark.parametrize("cut", [0, 3, 4, 7, 8, 100, 8 + 256, 8 + 256 + 15])
def test_truncated_header_rejected(cut):
    with pytest.raises(MalformedHeaderError):
        parse_header(_valid()[:cut])


def test_unknown_cipher_id_rejected():
    raw = struct.pack("<i", 12345) + _valid()[4:]
    with pytest.raises(MalformedHeaderError, match="unknown cipher"):
        parse_header(raw)


@pytest.mark.parametrize("length", [0, -1, MAX_WRAPPED_KEY_LENGTH, 2**31 - 1])
def test_wrapped_length_out_of_range_rejected(length):
    raw = struct.pack("<i", 427) + struct.pack("<i", length) + WRAPPED
    with pytest.raises(MalformedHeaderError, match="out of range"):
        parse_header(raw)


def test_read_error_is_io_failure():
    class Broken(io.RawIOBase):
        def readable(self):
            return True

        def readinto(self, b):
            raise OSError("device gone")

    with pytest.raises(EnvelopeIOError, match="Failed to read sealed file"):
        decode_header(Broken())


class _Chunked(io.RawIOBase):
    """Raw source that hands out at most 7 bytes per read."""

    def __init__(self, data):
        self._buf = io.BytesIO(data)

    def readable(self):
        return True

    def readinto(self, b):
        chunk = self._buf.read(min(len(b), 7))
        b[:len(chunk)] = chunk
        return len(chunk)


def test_decode_collects_short_reads():
    iv = os.urandom(16)
    raw = encode_header(427, WRAPPED, iv)
    stream = _Chunked(raw + b"tail")
    header = decode_header(stream)
    assert header == EnvelopeHeader(cipher_id=427, wrapped_key=WRAPPED, iv=iv)
    assert stream.read() == b"tail"


def test_short_reads_then_eof_is_malformed():
    raw = encode_header(427, WRAPPED, b"\x00" * 16)
    with pytest.raises(MalformedHeaderError, match="truncated IV"):
        decode_header(_Chunked(raw[:-3]))
