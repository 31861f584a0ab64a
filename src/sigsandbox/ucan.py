"""
UCAN tokens: JWTs whose issuer is a did:key.

Only the token itself is checked (signature, time bounds); delegation
chains in ``prf`` are reported but not followed.
"""
import logging
import math
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

import jwt
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey, Ed25519PublicKey

from .config import Settings, get_settings
from .did import is_did, public_key_from_did
from .errors import InvalidDidFormat, InvalidUcan
from .types import KeyMaterial, KeyType, UcanDetails, VerificationResult

logger = logging.getLogger(__name__)

UCAN_VERSION = '0.10.0'

# 9999-12-31T23:59:59Z, the last second datetime can render
MAX_TIMESTAMP = 253402300799

_ALG_TO_KEY_TYPE = {
    'EdDSA': KeyType.ED25519,
    'RS256': KeyType.RSA,
}
_KEY_TYPE_TO_ALG = {kt: alg for alg, kt in _ALG_TO_KEY_TYPE.items()}


@dataclass
class Ucan:
    header: Dict[str, Any]
    payload: Dict[str, Any]
    token: str


def _check_time_claim(payload: Dict[str, Any], claim: str) -> None:
    value = payload.get(claim)
    if value is None:
        return
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidUcan(f"UCAN '{claim}' must be a number")
    if not math.isfinite(value) or not 0 <= value <= MAX_TIMESTAMP:
        raise InvalidUcan(f"UCAN '{claim}' is out of range: {value!r}")


def parse_ucan(token: str) -> Ucan:
    """Decode header and payload without checking the signature."""
    token = token.strip()
    if token.count('.') != 2:
        raise InvalidUcan(f'UCAN must have 3 dot-separated parts, got {token.count(".") + 1}')
    try:
        header = jwt.get_unverified_header(token)
        payload = jwt.decode(token, options={'verify_signature': False})
    except jwt.DecodeError as e:
        raise InvalidUcan(f'Malformed UCAN: {e}') from e
    for field in ('iss', 'aud'):
        if not isinstance(payload.get(field), str):
            raise InvalidUcan(f"UCAN payload is missing '{field}'")
    _check_time_claim(payload, 'exp')
    _check_time_claim(payload, 'nbf')
    return Ucan(header=header, payload=payload, token=token)


def _issuer_key(key_type: KeyType, public_key: bytes):
    if key_type is KeyType.ED25519:
        try:
            return Ed25519PublicKey.from_public_bytes(public_key)
        except ValueError as e:
            raise InvalidUcan(f'Malformed Ed25519 issuer key: {e}') from e
    try:
        key = serialization.load_der_public_key(public_key)
    except (ValueError, UnsupportedAlgorithm) as e:
        raise InvalidUcan(f'Malformed RSA issuer key: {e}') from e
    if not isinstance(key, rsa.RSAPublicKey):
        raise InvalidUcan(f'Expected an RSA issuer key, got {type(key).__name__}')
    return key


def signing_key(material: KeyMaterial):
    """The issuer's private key in the form PyJWT signs with."""
    if material.key_type is KeyType.ED25519:
        return Ed25519PrivateKey.from_private_bytes(bytes(material.private_key))
    return material.private_key


def validate_ucan(token: str, settings: Optional[Settings] = None) -> Ucan:
    """
    Parse a UCAN and check its signature against the issuer's did:key and
    its exp/nbf bounds. Raises InvalidUcan.
    """
    settings = settings or get_settings()
    ucan = parse_ucan(token)
    alg = ucan.header.get('alg')
    expected_type = _ALG_TO_KEY_TYPE.get(alg)
    if expected_type is None:
        raise InvalidUcan(f'Unsupported UCAN alg: {alg!r}')

    issuer = ucan.payload['iss']
    if not is_did(issuer):
        raise InvalidUcan(f'UCAN issuer is not a did:key: {issuer!r}')
    try:
        key_type, public_key = public_key_from_did(issuer)
    except InvalidDidFormat as e:
        raise InvalidUcan(f'UCAN issuer: {e}') from e
    if key_type is not expected_type:
        raise InvalidUcan(f'alg {alg} does not match issuer key type {key_type.value}')

    try:
        jwt.decode(
            ucan.token,
            _issuer_key(key_type, public_key),
            algorithms=[alg],
            leeway=settings.ucan_clock_skew,
            options={
                'verify_aud': False,
                # null claims mean "unbounded"
                'verify_exp': ucan.payload.get('exp') is not None,
                'verify_nbf': ucan.payload.get('nbf') is not None,
            },
        )
    except jwt.ExpiredSignatureError:
        raise InvalidUcan('UCAN has expired') from None
    except jwt.ImmatureSignatureError:
        raise InvalidUcan('UCAN is not active yet') from None
    except jwt.InvalidSignatureError:
        raise InvalidUcan('UCAN signature is invalid') from None
    except jwt.InvalidTokenError as e:
        raise InvalidUcan(f'UCAN rejected: {e}') from e
    return ucan


def _iso(ts: Optional[float]) -> str:
    if not ts:
        return 'N/A'
    try:
        return datetime.fromtimestamp(ts, tz=timezone.utc).isoformat()
    except (OverflowError, OSError, ValueError):
        return 'N/A'


def ucan_details(ucan: Ucan) -> UcanDetails:
    payload = ucan.payload
    return UcanDetails(
        issuer=payload['iss'],
        audience=payload['aud'],
        expiration=_iso(payload.get('exp')),
        not_before=_iso(payload.get('nbf')),
        capabilities=payload.get('att') or [],
    )


def inspect_ucan(
    token: str,
    settings: Optional[Settings] = None,
) -> Tuple[VerificationResult, Optional[UcanDetails]]:
    try:
        ucan = validate_ucan(token, settings=settings)
    except InvalidUcan as e:
        logger.warning('UCAN rejected: %s', e)
        return VerificationResult(valid=False, error=str(e)), None
    return VerificationResult(valid=True), ucan_details(ucan)


def encode_ucan(
    issuer: KeyMaterial,
    audience: str,
    capabilities: List[Dict[str, Any]],
    lifetime: Optional[int] = 30,
    now: Optional[int] = None,
    not_before: Optional[int] = None,
    proofs: Optional[List[str]] = None,
) -> str:
    """Build and sign a UCAN issued by ``issuer``. A lifetime of None never expires."""
    now = int(time.time()) if now is None else now
    payload: Dict[str, Any] = {
        'ucv': UCAN_VERSION,
        'iss': issuer.did,
        'aud': audience,
        'att': capabilities,
        'prf': proofs or [],
    }
    if lifetime is not None:
        payload['exp'] = now + lifetime
    if not_before is not None:
        payload['nbf'] = not_before
    return jwt.encode(payload, signing_key(issuer), algorithm=_KEY_TYPE_TO_ALG[issuer.key_type])
