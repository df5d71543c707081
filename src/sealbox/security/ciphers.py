"""Symmetric cipher registry for sealed envelopes.

Each supported cipher is described by a :class:`CipherSpec`. The numeric id
written into an envelope header is the OpenSSL NID of the cipher and the header
layout follows ``EVP_Seal*`` output, but the session key is wrapped with
RSA-OAEP, so sealed files cannot be opened with ``EVP_Open``.

Stream-like modes (CFB, CFB8, OFB, CTR, ChaCha20) report a block size of 1,
the same way OpenSSL does; only ECB and CBC are padded.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Union

from cryptography.hazmat.primitives.ciphers import algorithms, modes

from sealbox.core.exceptions import InvalidCipherError


# Smallest StreamBuffer; the real size is rounded up to a block multiple.
MINIMUM_BUFFER_SIZE = 1024


@dataclass(frozen=True)
class CipherSpec:
    name: str
    nid: int
    algorithm: Callable[..., object]
    mode: Optional[Callable[[bytes], object]]
    block_size: int
    key_length: int
    iv_length: int
    padded: bool = False

    def build(self, key, iv):
        """Return the (algorithm, mode) pair for a cryptography Cipher."""
        # ChaCha20 takes its nonce in the algorithm, not in a mode
        if self.mode is None:
            return self.algorithm(key, iv), None
        return self.algorithm(key), self.mode(iv)


def _ecb(_iv):
    return modes.ECB()


_REGISTRY: Dict[str, CipherSpec] = {}
_BY_NID: Dict[int, CipherSpec] = {}


def _register(spec: CipherSpec) -> None:
    _REGISTRY[spec.name] = spec
    _BY_NID[spec.nid] = spec


for _bits, _nids in (
    (128, {"ecb": 418, "cbc": 419, "ofb": 420, "cfb": 421, "cfb8": 653, "ctr": 904}),
    (192, {"ecb": 422, "cbc": 423, "ofb": 424, "cfb": 425, "cfb8": 654, "ctr": 905}),
    (256, {"ecb": 426, "cbc": 427, "ofb": 428, "cfb": 429, "cfb8": 655, "ctr": 906}),
):
    _key_len = _bits // 8
    _register(CipherSpec(f"aes-{_bits}-ecb", _nids["ecb"], algorithms.AES, _ecb, 16, _key_len, 0, padded=True))
    _register(CipherSpec(f"aes-{_bits}-cbc", _nids["cbc"], algorithms.AES, modes.CBC, 16, _key_len, 16, padded=True))
    _register(CipherSpec(f"aes-{_bits}-cfb", _nids["cfb"], algorithms.AES, modes.CFB, 1, _key_len, 16))
    _register(CipherSpec(f"aes-{_bits}-cfb8", _nids["cfb8"], algorithms.AES, modes.CFB8, 1, _key_len, 16))
    _register(CipherSpec(f"aes-{_bits}-ofb", _nids["ofb"], algorithms.AES, modes.OFB, 1, _key_len, 16))
    _register(CipherSpec(f"aes-{_bits}-ctr", _nids["ctr"], algorithms.AES, modes.CTR, 1, _key_len, 16))

for _bits, _ecb_nid, _cbc_nid in ((128, 754, 751), (192, 755, 752), (256, 756, 753)):
    _register(CipherSpec(f"camellia-{_bits}-ecb", _ecb_nid, algorithms.Camellia, _ecb, 16, _bits // 8, 0, padded=True))
    _register(CipherSpec(f"camellia-{_bits}-cbc", _cbc_nid, algorithms.Camellia, modes.CBC, 16, _bits // 8, 16, padded=True))

_register(CipherSpec("chacha20", 1019, algorithms.ChaCha20, None, 1, 32, 16))

# OpenSSL short aliases
_ALIASES = {
    "aes128": "aes-128-cbc",
    "aes192": "aes-192-cbc",
    "aes256": "aes-256-cbc",
    "aes-128-cfb128": "aes-128-cfb",
    "aes-192-cfb128": "aes-192-cfb",
    "aes-256-cfb128": "aes-256-cfb",
    "camellia128": "camellia-128-cbc",
    "camellia192": "camellia-192-cbc",
    "camellia256": "camellia-256-cbc",
}


def resolve(identifier: Union[str, int, CipherSpec]) -> CipherSpec:
    """Return the :class:`CipherSpec` for a cipher name or numeric id.

    Names are matched case-insensitively; a string of digits is treated as an
    id. Raises :class:`InvalidCipherError` for anything unknown.
    """
    if isinstance(identifier, CipherSpec):
        return identifier
    if isinstance(identifier, bool):
        raise InvalidCipherError(f"Invalid cipher identifier: {identifier!r}")
    if isinstance(identifier, int):
        spec = _BY_NID.get(identifier)
        if spec is None:
            raise InvalidCipherError(f"Unknown cipher id: {identifier}")
        return spec
    if isinstance(identifier, str):
        name = identifier.strip().lower()
        if name.isdigit():
            return resolve(int(name))
        name = _ALIASES.get(name, name)
        spec = _REGISTRY.get(name)
        if spec is None:
            raise InvalidCipherError(f"Invalid cipher name: {identifier}")
        return spec
    raise InvalidCipherError(f"Invalid cipher identifier: {identifier!r}")


def is_known_id(nid: int) -> bool:
    return nid in _BY_NID


def list_ciphers() -> List[str]:
    return sorted(_REGISTRY)


def buffer_size(block_size: int, minimum: int = MINIMUM_BUFFER_SIZE) -> int:
    """Smallest multiple of ``block_size`` that is >= ``minimum``."""
    if block_size <= 0:
        raise ValueError("block_size must be positive")
    return math.ceil(minimum / block_size) * block_size
