"""
Private key import and export.

Ed25519 keys are held as PyNaCl ``SigningKey`` objects, RSA keys as
``cryptography`` private keys. Every import path ends in
:func:`material_from_private_key`, which re-derives the public key and
the did:key from whatever private key was loaded.
"""
import json
import logging
import re
from typing import Any, Callable, Dict, Optional, Tuple, Union

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from nacl.signing import SigningKey

from .did import did_from_public_key
from .encoding import decode, encode, parse_encoding
from .errors import DecodeError, InvalidKeyFormat, InvalidKeyLength
from .types import Encoding, ImportFormat, KeyMaterial, KeyType, PrivateKeyHandle

logger = logging.getLogger(__name__)

ED25519_SEED_LENGTH = 32

_PEM_ARMOR_RE = re.compile(r'-----(BEGIN|END) [A-Z ]*PRIVATE KEY-----')


def _b64url(data: bytes) -> str:
    return encode(data, Encoding.BASE64URL)


def _b64url_decode(value: Any, field: str) -> bytes:
    if not isinstance(value, str):
        raise InvalidKeyFormat(f"JWK field '{field}' must be a string")
    try:
        return decode(value, Encoding.BASE64URL)
    except DecodeError as e:
        raise InvalidKeyFormat(f"JWK field '{field}' is not base64url: {e}") from e


def _b64url_int(jwk: Dict[str, Any], field: str) -> int:
    return int.from_bytes(_b64url_decode(jwk[field], field), 'big')


def _int_b64url(value: int) -> str:
    return _b64url(value.to_bytes(max(1, (value.bit_length() + 7) // 8), 'big'))


def rsa_public_key_bytes(private_key: rsa.RSAPrivateKey) -> bytes:
    """PKCS#1 DER RSAPublicKey, the payload of an rsa-pub multikey."""
    return private_key.public_key().public_bytes(
        serialization.Encoding.DER, serialization.PublicFormat.PKCS1
    )


def material_from_private_key(private_key: PrivateKeyHandle) -> KeyMaterial:
    if isinstance(private_key, SigningKey):
        key_type = KeyType.ED25519
        public_key = bytes(private_key.verify_key)
    elif isinstance(private_key, rsa.RSAPrivateKey):
        key_type = KeyType.RSA
        public_key = rsa_public_key_bytes(private_key)
    else:
        raise InvalidKeyFormat(f'Unsupported private key type: {type(private_key).__name__}')
    return KeyMaterial(
        key_type=key_type,
        private_key=private_key,
        public_key=public_key,
        did=did_from_public_key(public_key, key_type),
    )


# ---------------------------------------------------------------------------
# Import parsers, one per (key type, format)
# ---------------------------------------------------------------------------

def _decode_key_text(text: str, encoding: Encoding) -> bytes:
    try:
        return decode(text.strip(), encoding)
    except DecodeError as e:
        raise InvalidKeyFormat(f'Private key is not valid {encoding.value}: {e}') from e


def _load_json(text: str) -> Dict[str, Any]:
    try:
        jwk = json.loads(text)
    except json.JSONDecodeError as e:
        raise InvalidKeyFormat(f'JWK is not valid JSON: {e}') from e
    if not isinstance(jwk, dict):
        raise InvalidKeyFormat('JWK must be a JSON object')
    return jwk


def _ed25519_from_seed(seed: bytes) -> SigningKey:
    if len(seed) != ED25519_SEED_LENGTH:
        raise InvalidKeyLength(ED25519_SEED_LENGTH, len(seed))
    return SigningKey(seed)


def _import_ed25519_raw(text: str, encoding: Optional[Encoding]) -> PrivateKeyHandle:
    seed = _decode_key_text(text, encoding or Encoding.BASE64URL)
    return _ed25519_from_seed(seed)


def _import_ed25519_jwk(text: str, encoding: Optional[Encoding]) -> PrivateKeyHandle:
    jwk = _load_json(text)
    if jwk.get('kty') != 'OKP' or jwk.get('crv') != 'Ed25519':
        raise InvalidKeyFormat(
            f"Ed25519 JWK needs kty='OKP' and crv='Ed25519', got "
            f"kty={jwk.get('kty')!r} crv={jwk.get('crv')!r}"
        )
    if 'd' not in jwk:
        raise InvalidKeyFormat("Ed25519 JWK is missing private field 'd'")
    signing_key = _ed25519_from_seed(_b64url_decode(jwk['d'], 'd'))
    if 'x' in jwk and _b64url_decode(jwk['x'], 'x') != bytes(signing_key.verify_key):
        raise InvalidKeyFormat("JWK field 'x' does not match the private key")
    return signing_key


def _import_rsa_jwk(text: str, encoding: Optional[Encoding]) -> PrivateKeyHandle:
    jwk = _load_json(text)
    if jwk.get('kty') != 'RSA':
        raise InvalidKeyFormat(f"RSA JWK needs kty='RSA', got kty={jwk.get('kty')!r}")
    missing = [f for f in ('n', 'e', 'd') if f not in jwk]
    if missing:
        raise InvalidKeyFormat(f"RSA JWK is missing field(s): {', '.join(missing)}")
    n, e, d = (_b64url_int(jwk, f) for f in ('n', 'e', 'd'))
    try:
        if all(f in jwk for f in ('p', 'q')):
            p, q = _b64url_int(jwk, 'p'), _b64url_int(jwk, 'q')
        else:
            p, q = rsa.rsa_recover_prime_factors(n, e, d)
        dmp1 = _b64url_int(jwk, 'dp') if 'dp' in jwk else rsa.rsa_crt_dmp1(d, p)
        dmq1 = _b64url_int(jwk, 'dq') if 'dq' in jwk else rsa.rsa_crt_dmq1(d, q)
        iqmp = _b64url_int(jwk, 'qi') if 'qi' in jwk else rsa.rsa_crt_iqmp(p, q)
        numbers = rsa.RSAPrivateNumbers(
            p=p, q=q, d=d, dmp1=dmp1, dmq1=dmq1, iqmp=iqmp,
            public_numbers=rsa.RSAPublicNumbers(e=e, n=n),
        )
        return numbers.private_key()
    except ValueError as e:
        raise InvalidKeyFormat(f'Inconsistent RSA JWK parameters: {e}') from e


def _load_rsa_der(der: bytes) -> PrivateKeyHandle:
    try:
        private_key = serialization.load_der_private_key(der, password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise InvalidKeyFormat(f'Could not import PKCS8 key: {e}') from e
    if not isinstance(private_key, rsa.RSAPrivateKey):
        raise InvalidKeyFormat(f'Expected an RSA key, got {type(private_key).__name__}')
    return private_key


def strip_pem_armor(text: str) -> str:
    return ''.join(_PEM_ARMOR_RE.sub('', text).split())


def _import_rsa_pem(text: str, encoding: Optional[Encoding]) -> PrivateKeyHandle:
    body = strip_pem_armor(text)
    if not body:
        raise InvalidKeyFormat('PEM contains no key data')
    return _load_rsa_der(_decode_key_text(body, Encoding.BASE64PAD))


def _import_rsa_pkcs8(text: str, encoding: Optional[Encoding]) -> PrivateKeyHandle:
    return _load_rsa_der(_decode_key_text(text, encoding or Encoding.BASE64PAD))


_Parser = Callable[[str, Optional[Encoding]], PrivateKeyHandle]

_IMPORTERS: Dict[Tuple[KeyType, ImportFormat], _Parser] = {
    (KeyType.ED25519, ImportFormat.RAW): _import_ed25519_raw,
    (KeyType.ED25519, ImportFormat.JWK): _import_ed25519_jwk,
    (KeyType.RSA, ImportFormat.JWK): _import_rsa_jwk,
    (KeyType.RSA, ImportFormat.PEM): _import_rsa_pem,
    (KeyType.RSA, ImportFormat.PKCS8): _import_rsa_pkcs8,
}


def import_private_key(
    text: str,
    fmt: Union[ImportFormat, str],
    key_type: Union[KeyType, str],
    encoding: Optional[Union[Encoding, str]] = None,
) -> KeyMaterial:
    """
    Import a private key and derive its public key and DID.

    ``encoding`` only applies to ``raw`` (default base64url) and ``pkcs8``
    (default base64pad) input.

    Raises InvalidKeyFormat for a malformed key or an unsupported
    (key type, format) pair, InvalidKeyLength for a raw seed of the
    wrong size.
    """
    key_type = KeyType.parse(key_type)
    fmt = ImportFormat(fmt)
    importer = _IMPORTERS.get((key_type, fmt))
    if importer is None:
        raise InvalidKeyFormat(f'Cannot import {key_type.value} keys from {fmt.value}')
    enc = parse_encoding(encoding) if encoding is not None else None
    material = material_from_private_key(importer(text, enc))
    logger.debug('Imported %s key from %s as %s', key_type.value, fmt.value, material.did)
    return material


# ---------------------------------------------------------------------------
# Export
# ---------------------------------------------------------------------------

def export_private_key_bytes(material: KeyMaterial) -> bytes:
    """The 32-byte seed for Ed25519, PKCS8 DER for RSA."""
    if material.key_type is KeyType.ED25519:
        return bytes(material.private_key)
    return material.private_key.private_bytes(
        serialization.Encoding.DER,
        serialization.PrivateFormat.PKCS8,
        serialization.NoEncryption(),
    )


def export_public_jwk(material: KeyMaterial) -> Dict[str, str]:
    if material.key_type is KeyType.ED25519:
        return {'kty': 'OKP', 'crv': 'Ed25519', 'x': _b64url(material.public_key)}
    numbers = material.private_key.public_key().public_numbers()
    return {'kty': 'RSA', 'n': _int_b64url(numbers.n), 'e': _int_b64url(numbers.e)}


def export_private_jwk(material: KeyMaterial) -> Dict[str, str]:
    jwk = export_public_jwk(material)
    if material.key_type is KeyType.ED25519:
        jwk['d'] = _b64url(bytes(material.private_key))
        return jwk
    numbers = material.private_key.private_numbers()
    jwk.update({
        'd': _int_b64url(numbers.d),
        'p': _int_b64url(numbers.p),
        'q': _int_b64url(numbers.q),
        'dp': _int_b64url(numbers.dmp1),
        'dq': _int_b64url(numbers.dmq1),
        'qi': _int_b64url(numbers.iqmp),
    })
    return jwk


def export_private_pem(material: KeyMaterial) -> str:
    if material.key_type is KeyType.ED25519:
        private_key = Ed25519PrivateKey.from_private_bytes(bytes(material.private_key))
    else:
        private_key = material.private_key
    return private_key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.PKCS8,
        serialization.NoEncryption(),
    ).decode('ascii')


def encoded_keys(material: KeyMaterial, which: str = 'public') -> Dict[Encoding, str]:
    """Render the public or private key bytes in every supported encoding."""
    if which == 'public':
        data = material.public_key_bytes()
    elif which == 'private':
        data = export_private_key_bytes(material)
    else:
        raise ValueError(f"which must be 'public' or 'private', got {which!r}")
    return {e: encode(data, e) for e in Encoding}
