from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional, Union

from nacl.signing import SigningKey
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey


class KeyType(str, Enum):
    ED25519 = 'ed25519'
    RSA = 'rsa'

    @classmethod
    def parse(cls, value: Union['KeyType', str]) -> 'KeyType':
        if isinstance(value, cls):
            return value
        name = str(value).strip().lower()
        # the browser sandbox calls Ed25519 keys 'ecc'
        if name == 'ecc':
            return cls.ED25519
        try:
            return cls(name)
        except ValueError:
            raise ValueError(f'Unsupported key type: {value!r}') from None


class ImportFormat(str, Enum):
    RAW = 'raw'
    JWK = 'jwk'
    PEM = 'pem'
    PKCS8 = 'pkcs8'


class Encoding(str, Enum):
    BASE64 = 'base64'
    BASE64PAD = 'base64pad'
    BASE64URL = 'base64url'
    BASE58BTC = 'base58btc'
    HEX = 'hex'


PrivateKeyHandle = Union[SigningKey, RSAPrivateKey]


@dataclass(frozen=True)
class KeyMaterial:
    key_type: KeyType
    private_key: PrivateKeyHandle = field(repr=False)
    public_key: bytes  # 32-byte point (ed25519) or PKCS#1 DER (rsa)
    did: str

    def public_key_bytes(self) -> bytes:
        return self.public_key


@dataclass(frozen=True)
class VerificationResult:
    valid: bool
    error: Optional[str] = None

    @property
    def completed(self) -> bool:
        """True when verification ran, whatever its verdict."""
        return self.error is None


@dataclass
class UcanDetails:
    issuer: str
    audience: str
    expiration: str  # ISO 8601 or 'N/A'
    not_before: str
    capabilities: List[Any]
