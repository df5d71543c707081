"""
Unit tests for session key generation and RSA key transport.
"""

import pytest
from sealbox.core.exceptions import KeyUnwrapError
from sealbox.security.crypto import (
    generate_iv,
    generate_session_key,
    unwrap_session_key,
    wrap_session_key,
    zeroize,
)


def test_generate_session_key_is_mutable_and_random():
    a = generate_session_key(32)
    b = generate_session_key(32)
    assert isinstance(a, bytearray)
    assert len(a) == 32
    assert a != b


def test_generate_iv_lengths():
    assert generate_iv(0) == b""
    assert len(generate_iv(16)) == 16


def test_wrap_unwrap_roundtrip(rsa_key):
    key = generate_session_key(32)
    wrapped = wrap_session_key(rsa_key.public_key(), key)
    # OAEP output is always the modulus size
    assert len(wrapped) == 256
    assert unwrap_session_key(rsa_key, wrapped, 32) == key


def test_wrap_is_randomized(rsa_key):
    key = generate_session_key(16)
    assert wrap_session_key(rsa_key.public_key(), key) != wrap_session_key(rsa_key.public_key(), key)


def test_unwrap_with_wrong_key(rsa_key, other_rsa_key):
    wrapped = wrap_session_key(rsa_key.public_key(), generate_session_key(32))
    with pytest.raises(KeyUnwrapError):
        unwrap_session_key(other_rsa_key, wrapped, 32)


def test_unwrap_corrupted(rsa_key):
    wrapped = bytearray(wrap_session_key(rsa_key.public_key(), generate_session_key(32)))
    wrapped[100] ^= 0x01
    with pytest.raises(KeyUnwrapError):
        unwrap_session_key(rsa_key, bytes(wrapped), 32)


def test_unwrap_wrong_length_input(rsa_key):
    with pytest.raises(KeyUnwrapError):
        unwrap_session_key(rsa_key, b"\x01" * 10, 32)


def test_unwrap_unexpected_key_size(rsa_key):
    wrapped = wrap_session_key(rsa_key.public_key(), generate_session_key(16))
    with pytest.raises(KeyUnwrapError):
        unwrap_session_key(rsa_key, wrapped, 32)


def test_zeroize():
    buf = bytearray(b"secret")
    zeroize(buf)
    assert buf == bytearray(6)
    # immutable and missing buffers are ignored
    zeroize(b"immutable")
    zeroize(None)
