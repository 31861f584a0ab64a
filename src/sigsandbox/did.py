from typing import Optional, Tuple, Union

from .encoding import decode
from .errors import DecodeError, InvalidDidFormat, InvalidMultikey
from .multikey import MULTIKEY_PREFIX, decode_multikey, encode_multikey
from .types import Encoding, KeyType


DID_KEY_SCHEME = 'did:key:'
DID_KEY_PREFIX = DID_KEY_SCHEME + MULTIKEY_PREFIX


def is_did(value: str) -> bool:
    return value.startswith(DID_KEY_SCHEME)


def did_from_public_key(public_key: bytes, key_type: Union[KeyType, str]) -> str:
    """
    Create did:key identifier using the key type's multicodec prefix
    (0xed01 for ed25519, 0x8524 for rsa) + base58btc with 'z' prefix.
    """
    return DID_KEY_SCHEME + encode_multikey(public_key, key_type)


def public_key_from_did(did: str) -> Tuple[KeyType, bytes]:
    """
    Recover (key type, raw public key) from a did:key string.

    Raises InvalidDidFormat on a bad prefix, bad base58, or an
    unrecognized multicodec tag.
    """
    if not did.startswith(DID_KEY_PREFIX):
        raise InvalidDidFormat(f"DID must start with '{DID_KEY_PREFIX}', got '{did[:20]}'")
    try:
        return decode_multikey(did[len(DID_KEY_SCHEME):])
    except InvalidMultikey as e:
        raise InvalidDidFormat(f'Invalid did:key: {e}') from e


def resolve_did(
    value: str,
    key_type: Union[KeyType, str],
    encoding: Optional[Union[Encoding, str]] = None,
) -> str:
    """
    Return a did:key for a verifier input, which is either a DID already
    (passed through untouched) or a public key in ``encoding``.
    """
    value = value.strip()
    if is_did(value):
        return value
    if encoding is None:
        raise InvalidDidFormat('An encoding is required to read a bare public key')
    try:
        public_key = decode(value, encoding)
    except DecodeError as e:
        raise InvalidDidFormat(f'Public key is not valid {encoding}: {e}') from e
    return did_from_public_key(public_key, key_type)
