import binascii
import re
from base64 import b64decode, b64encode
from typing import Dict, Tuple, Union

import base58

from .errors import DecodeError, UnknownMultibasePrefix
from .types import Encoding


_BASE64_RE = re.compile(r'[A-Za-z0-9+/]*={0,2}')
_BASE64URL_RE = re.compile(r'[A-Za-z0-9_-]*={0,2}')
_BASE58_RE = re.compile(r'[1-9A-HJ-NP-Za-km-z]*')
_HEX_RE = re.compile(r'[0-9a-fA-F]*')

MULTIBASE_PREFIXES: Dict[Encoding, str] = {
    Encoding.BASE64PAD: 'M',
    Encoding.BASE64: 'm',
    Encoding.BASE64URL: 'U',
    Encoding.BASE58BTC: 'z',
    Encoding.HEX: 'f',
}
_PREFIX_TO_ENCODING = {p: e for e, p in MULTIBASE_PREFIXES.items()}

_ALIASES = {
    'base58': Encoding.BASE58BTC,
    'base16': Encoding.HEX,
}


def parse_encoding(value: Union[Encoding, str]) -> Encoding:
    if isinstance(value, Encoding):
        return value
    name = str(value).strip().lower()
    if name in _ALIASES:
        return _ALIASES[name]
    try:
        return Encoding(name)
    except ValueError:
        raise ValueError(f'Unsupported encoding: {value!r}') from None


def encode_base58btc(data: bytes) -> str:
    return base58.b58encode(bytes(data)).decode('ascii')


def decode_base58btc(text: str) -> bytes:
    """Leading '1' digits come back as leading zero bytes."""
    if not _BASE58_RE.fullmatch(text):
        raise DecodeError('Invalid character in base58btc input')
    try:
        return base58.b58decode(text)
    except ValueError as e:
        raise DecodeError(f'Invalid base58btc input: {e}') from e


def _decode_base64(text: str, pattern: 're.Pattern', altchars=None) -> bytes:
    if not pattern.fullmatch(text):
        raise DecodeError('Invalid character in base64 input')
    padded = text + '=' * (-len(text) % 4)
    try:
        return b64decode(padded, altchars=altchars, validate=True)
    except binascii.Error as e:
        raise DecodeError(f'Invalid base64 input: {e}') from e


def _decode_hex(text: str) -> bytes:
    if text[:2] in ('0x', '0X'):
        text = text[2:]
    if len(text) % 2:
        raise DecodeError('Hex input must have an even number of digits')
    if not _HEX_RE.fullmatch(text):
        raise DecodeError('Invalid character in hex input')
    return bytes.fromhex(text)


def encode(data: bytes, encoding: Union[Encoding, str]) -> str:
    """
    Encode bytes as text. base64 and base64url are unpadded, base64pad is
    padded, hex is lowercase.
    """
    encoding = parse_encoding(encoding)
    data = bytes(data)
    if encoding is Encoding.BASE64PAD:
        return b64encode(data).decode('ascii')
    if encoding is Encoding.BASE64:
        return b64encode(data).rstrip(b'=').decode('ascii')
    if encoding is Encoding.BASE64URL:
        return b64encode(data, altchars=b'-_').rstrip(b'=').decode('ascii')
    if encoding is Encoding.BASE58BTC:
        return encode_base58btc(data)
    return data.hex()


def decode(text: str, encoding: Union[Encoding, str]) -> bytes:
    """
    Decode text produced by :func:`encode`. Missing base64 padding is
    restored; a leading ``0x`` is accepted on hex.

    Raises DecodeError on characters outside the alphabet.
    """
    encoding = parse_encoding(encoding)
    if not isinstance(text, str):
        raise DecodeError(f'Expected text, got {type(text).__name__}')
    if encoding in (Encoding.BASE64, Encoding.BASE64PAD):
        return _decode_base64(text, _BASE64_RE)
    if encoding is Encoding.BASE64URL:
        return _decode_base64(text, _BASE64URL_RE, altchars=b'-_')
    if encoding is Encoding.BASE58BTC:
        return decode_base58btc(text)
    return _decode_hex(text)


def transcode(text: str, source: Union[Encoding, str], target: Union[Encoding, str]) -> str:
    return encode(decode(text, source), target)


def to_multibase(data: bytes, encoding: Union[Encoding, str]) -> str:
    encoding = parse_encoding(encoding)
    return MULTIBASE_PREFIXES[encoding] + encode(data, encoding)


def from_multibase(text: str) -> Tuple[Encoding, bytes]:
    if not text:
        raise DecodeError('Empty multibase string')
    encoding = _PREFIX_TO_ENCODING.get(text[0])
    if encoding is None:
        raise UnknownMultibasePrefix(text[0])
    return encoding, decode(text[1:], encoding)


class EncodedBytes:
    """
    Immutable bytes with a cache of their text renderings.
    """

    __slots__ = ('_data', '_cache')

    def __init__(self, data: bytes):
        self._data = bytes(data)
        self._cache: Dict[Encoding, str] = {}

    @classmethod
    def from_text(cls, text: str, encoding: Union[Encoding, str]) -> 'EncodedBytes':
        return cls(decode(text, encoding))

    @property
    def data(self) -> bytes:
        return self._data

    def as_string(self, encoding: Union[Encoding, str]) -> str:
        encoding = parse_encoding(encoding)
        text = self._cache.get(encoding)
        if text is None:
            text = self._cache[encoding] = encode(self._data, encoding)
        return text

    def as_multibase(self, encoding: Union[Encoding, str]) -> str:
        encoding = parse_encoding(encoding)
        return MULTIBASE_PREFIXES[encoding] + self.as_string(encoding)

    def all_encodings(self) -> Dict[Encoding, str]:
        return {e: self.as_string(e) for e in Encoding}

    def __bytes__(self) -> bytes:
        return self._data

    def __len__(self) -> int:
        return len(self._data)

    def __eq__(self, other) -> bool:
        if isinstance(other, EncodedBytes):
            return self._data == other._data
        if isinstance(other, (bytes, bytearray)):
            return self._data == bytes(other)
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._data)

    def __repr__(self) -> str:
        return f'EncodedBytes({self.as_string(Encoding.HEX)!r})'
