import logging
from typing import Optional, Union

from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa
from nacl.exceptions import BadSignatureError
from nacl.signing import SigningKey, VerifyKey

from .config import Settings, get_settings
from .did import public_key_from_did
from .errors import InvalidDidFormat, VerificationFailure
from .keys import material_from_private_key
from .types import KeyMaterial, KeyType, VerificationResult

logger = logging.getLogger(__name__)


def _pss_padding(settings: Settings) -> padding.PSS:
    return padding.PSS(
        mgf=padding.MGF1(hashes.SHA256()),
        salt_length=settings.rsa_pss_salt_length,
    )


def generate_keypair(
    key_type: Union[KeyType, str] = KeyType.ED25519,
    settings: Optional[Settings] = None,
) -> KeyMaterial:
    """
    Generate a fresh keypair. RSA size and exponent come from settings.
    """
    key_type = KeyType.parse(key_type)
    settings = settings or get_settings()
    if key_type is KeyType.ED25519:
        private_key = SigningKey.generate()
    else:
        private_key = rsa.generate_private_key(
            public_exponent=settings.rsa_public_exponent,
            key_size=settings.rsa_key_size,
        )
    material = material_from_private_key(private_key)
    logger.debug('Generated %s keypair %s', key_type.value, material.did)
    return material


def sign_bytes(
    material: KeyMaterial,
    data: bytes,
    settings: Optional[Settings] = None,
) -> bytes:
    if material.key_type is KeyType.ED25519:
        return bytes(material.private_key.sign(data).signature)
    return material.private_key.sign(
        data, _pss_padding(settings or get_settings()), hashes.SHA256()
    )


def sign(material: KeyMaterial, message: str, settings: Optional[Settings] = None) -> bytes:
    """
    Sign the UTF-8 bytes of message. Ed25519 returns 64 bytes, RSA-PSS
    returns a modulus-sized signature.
    """
    sig = sign_bytes(material, message.encode('utf-8'), settings=settings)
    logger.debug('Signed %d byte message with %s', len(message), material.did)
    return sig


def verify_bytes(
    key_type: KeyType,
    public_key: bytes,
    data: bytes,
    signature: bytes,
    settings: Optional[Settings] = None,
) -> bool:
    if key_type is KeyType.ED25519:
        try:
            vk = VerifyKey(public_key)
        except (ValueError, TypeError) as e:
            raise VerificationFailure(f'Malformed Ed25519 public key: {e}') from e
        try:
            vk.verify(data, signature)
            return True
        except BadSignatureError:
            return False
        except (ValueError, TypeError) as e:
            raise VerificationFailure(f'Malformed Ed25519 signature: {e}') from e

    try:
        pk = serialization.load_der_public_key(public_key)
    except (ValueError, UnsupportedAlgorithm) as e:
        raise VerificationFailure(f'Malformed RSA public key: {e}') from e
    if not isinstance(pk, rsa.RSAPublicKey):
        raise VerificationFailure(f'Expected an RSA public key, got {type(pk).__name__}')
    try:
        pk.verify(signature, data, _pss_padding(settings or get_settings()), hashes.SHA256())
        return True
    except InvalidSignature:
        return False


def verify(
    message: str,
    signature: bytes,
    did: Optional[str] = None,
    public_key: Optional[bytes] = None,
    key_type: Optional[Union[KeyType, str]] = None,
    settings: Optional[Settings] = None,
) -> bool:
    """
    Verify signature over the UTF-8 bytes of message against a did:key, or
    against raw public key bytes plus their key type.

    Returns False for a well-formed signature that does not match.
    Raises VerificationFailure when verification cannot be attempted.
    """
    if did is not None:
        try:
            key_type, public_key = public_key_from_did(did)
        except InvalidDidFormat as e:
            raise VerificationFailure(str(e)) from e
    elif public_key is None or key_type is None:
        raise VerificationFailure('A DID or a public key with its key type is required')
    else:
        key_type = KeyType.parse(key_type)
    return verify_bytes(
        key_type, bytes(public_key), message.encode('utf-8'), bytes(signature), settings=settings
    )


def verify_signature(
    message: str,
    signature: bytes,
    did: Optional[str] = None,
    public_key: Optional[bytes] = None,
    key_type: Optional[Union[KeyType, str]] = None,
    settings: Optional[Settings] = None,
) -> VerificationResult:
    """Like verify, but reports a failed attempt in the result instead of raising."""
    try:
        valid = verify(message, signature, did=did, public_key=public_key,
                       key_type=key_type, settings=settings)
    except VerificationFailure as e:
        logger.warning('Verification could not run: %s', e)
        return VerificationResult(valid=False, error=str(e))
    logger.debug('Verification finished: valid=%s', valid)
    return VerificationResult(valid=valid)
