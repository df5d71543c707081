"""
Exceptions for SealBox
Every failure of a seal/open call surfaces as one of these, so callers can
branch on the kind instead of on message text.
"""


class SealBoxError(Exception):
    # general container for errors
    pass


class KeyLoadError(SealBoxError):
    # raised if a key file is missing, unparsable or not an RSA key
    pass


class InvalidCipherError(SealBoxError):
    # raised when a cipher name or id does not resolve
    pass


class MalformedHeaderError(SealBoxError):
    # raised when a sealed file header is truncated or out of bounds
    pass


class KeyUnwrapError(SealBoxError):
    # raised when the session key cannot be recovered with the private key
    pass


class EnvelopeIOError(SealBoxError):
    # raised on a read/write failure (not on clean end of input)
    pass


class EncryptionError(SealBoxError):
    # raised when the cipher rejects an update or finalize while sealing
    pass


class DecryptionError(SealBoxError):
    # raised when the cipher rejects an update or finalize while opening (bad padding etc.)
    pass


class CipherStateError(SealBoxError):
    # raised on out-of-order cipher stream calls (programming error)
    pass
