from typing import Dict, Tuple, Union

from multiformats import multicodec

from .encoding import decode_base58btc, encode_base58btc
from .errors import DecodeError, InvalidMultikey
from .types import KeyType


# Multicodec names for public keys (0xed, 0x1205)
MULTICODECS: Dict[KeyType, str] = {
    KeyType.ED25519: 'ed25519-pub',
    KeyType.RSA: 'rsa-pub',
}
_CODEC_TO_KEY_TYPE = {name: kt for kt, name in MULTICODECS.items()}

MULTIKEY_PREFIX = 'z'


def multicodec_prefix(key_type: Union[KeyType, str]) -> bytes:
    return multicodec.wrap(MULTICODECS[KeyType.parse(key_type)], b'')


def wrap(data: bytes, key_type: Union[KeyType, str]) -> bytes:
    return multicodec.wrap(MULTICODECS[KeyType.parse(key_type)], bytes(data))


def unwrap(data: bytes) -> Tuple[KeyType, bytes]:
    """
    Split multicodec-prefixed bytes into (key type, key). Only the minimal
    varint prefix is accepted, so each key has exactly one encoding.
    """
    if not data:
        raise InvalidMultikey('Empty multicodec data')
    try:
        codec, raw = multicodec.unwrap(bytes(data))
    except KeyError as e:
        raise InvalidMultikey(f'Unsupported multicodec tag: {e}') from None
    except ValueError as e:
        raise InvalidMultikey(f'Malformed multicodec prefix: {e}') from e
    key_type = _CODEC_TO_KEY_TYPE.get(codec.name)
    if key_type is None:
        raise InvalidMultikey(f'Unsupported multicodec tag 0x{codec.code:04x} ({codec.name})')
    raw = bytes(raw)
    if wrap(raw, key_type) != bytes(data):
        raise InvalidMultikey('Non-minimal multicodec prefix')
    return key_type, raw


def encode_multikey(data: bytes, key_type: Union[KeyType, str]) -> str:
    return MULTIKEY_PREFIX + encode_base58btc(wrap(data, key_type))


def decode_multikey(text: str) -> Tuple[KeyType, bytes]:
    if not text.startswith(MULTIKEY_PREFIX):
        raise InvalidMultikey(f"Multikey must start with '{MULTIKEY_PREFIX}'")
    try:
        raw = decode_base58btc(text[len(MULTIKEY_PREFIX):])
    except DecodeError as e:
        raise InvalidMultikey(f'Invalid base58btc encoding: {e}') from e
    return unwrap(raw)
