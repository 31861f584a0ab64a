class SandboxError(Exception):
    """Base class for every error raised by sigsandbox."""


class DecodeError(SandboxError, ValueError):
    """Text is not valid for the encoding it was declared as."""


class UnknownMultibasePrefix(DecodeError):
    """Multibase text starts with a character we have no encoding for."""

    def __init__(self, prefix: str):
        self.prefix = prefix
        super().__init__(f'Unknown multibase prefix: {prefix!r}')


class InvalidDidFormat(SandboxError, ValueError):
    """Bad did:key scheme, bad base58 body, or unrecognized multicodec tag."""


class InvalidMultikey(InvalidDidFormat):
    pass


class InvalidKeyFormat(SandboxError, ValueError):
    """Structurally wrong JWK, PEM or PKCS8 input."""


class InvalidKeyLength(InvalidKeyFormat):
    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(f'Key must be {expected} bytes, got {actual}')


class VerificationFailure(SandboxError):
    """
    Verification could not be attempted (malformed key, DID or signature).
    A signature that simply does not match is not an error.
    """


class InvalidUcan(SandboxError, ValueError):
    pass
