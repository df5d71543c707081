"""
Shared fixtures: throwaway RSA key pairs and their PEM files.
"""

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa


def _pem_public(key) -> bytes:
    return key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )


def _pem_private(key, passphrase: bytes = None) -> bytes:
    algo = (
        serialization.BestAvailableEncryption(passphrase)
        if passphrase
        else serialization.NoEncryption()
    )
    return key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=algo,
    )


@pytest.fixture(scope="session")
def rsa_key():
    """RSA-2048 private key shared by the whole test run."""
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def other_rsa_key():
    """A second, unrelated RSA-2048 key."""
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture
def key_files(tmp_path, rsa_key):
    """Writes the key pair to PEM files and returns (public_path, private_path)."""
    pub = tmp_path / "pubkey.pem"
    priv = tmp_path / "privkey.pem"
    pub.write_bytes(_pem_public(rsa_key))
    priv.write_bytes(_pem_private(rsa_key))
    return pub, priv


@pytest.fixture
def encrypted_private_key_file(tmp_path, rsa_key):
    """Private key PEM protected with the passphrase 'hunter2'."""
    priv = tmp_path / "privkey_enc.pem"
    priv.write_bytes(_pem_private(rsa_key, b"hunter2"))
    return priv
