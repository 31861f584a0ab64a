import pytest

from sigsandbox.encoding import encode_base58btc
from sigsandbox.errors import InvalidDidFormat, InvalidMultikey
from sigsandbox.multikey import (
    MULTICODECS,
    decode_multikey,
    encode_multikey,
    multicodec_prefix,
    unwrap,
    wrap,
)
from sigsandbox.types import KeyType


class TestMulticodec:
    def test_known_prefixes(self):
        assert multicodec_prefix(KeyType.ED25519) == b'\xed\x01'
        assert multicodec_prefix(KeyType.RSA) == b'\x85\x24'

    def test_every_key_type_has_a_codec(self):
        assert set(MULTICODECS) == set(KeyType)

    @pytest.mark.parametrize('key_type', list(KeyType))
    def test_wrap_unwrap(self, key_type):
        data = bytes(range(32))
        assert unwrap(wrap(data, key_type)) == (key_type, data)

    def test_non_minimal_prefix_rejected(self):
        # 0xed with redundant continuation bytes
        with pytest.raises(InvalidMultikey, match='minimal'):
            unwrap(b'\xed\x81\x80\x00' + bytes(32))

    def test_truncated_prefix(self):
        with pytest.raises(InvalidMultikey):
            unwrap(b'\x85')

    def test_empty(self):
        with pytest.raises(InvalidMultikey):
            unwrap(b'')


class TestMultikey:
    @pytest.mark.parametrize('key_type', list(KeyType))
    def test_roundtrip(self, key_type):
        data = b'\x00\x01' + bytes(30)
        text = encode_multikey(data, key_type)
        assert text.startswith('z')
        assert decode_multikey(text) == (key_type, data)

    def test_ed25519_multikey_prefix(self):
        assert encode_multikey(bytes(32), 'ed25519').startswith('z6Mk')

    def test_missing_z(self):
        with pytest.raises(InvalidMultikey):
            decode_multikey('6MkiTBz1ymuepAQ4HEHYSF1H8quG5GLVVQR3djdX3mDooWp')

    def test_unknown_codec(self):
        text = 'z' + encode_base58btc(b'\x00\x00' + bytes(32))
        with pytest.raises(InvalidMultikey, match='multicodec'):
            decode_multikey(text)

    def test_non_minimal_prefix(self):
        text = 'z' + encode_base58btc(b'\xed\x81\x80\x00' + bytes(32))
        with pytest.raises(InvalidMultikey):
            decode_multikey(text)

    def test_bad_base58(self):
        with pytest.raises(InvalidMultikey):
            decode_multikey('z0OIl')

    def test_trailing_newline(self):
        with pytest.raises(InvalidMultikey):
            decode_multikey(encode_multikey(bytes(32), 'ed25519') + '\n')

    def test_is_an_invalid_did_format(self):
        with pytest.raises(InvalidDidFormat):
            decode_multikey('z')
