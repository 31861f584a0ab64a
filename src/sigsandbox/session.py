"""
In-memory state for one sandbox session.

A Session holds at most one keypair per key type, the last signature,
the encodings the user picked for display, and the last verification
result. Nothing is persisted; :meth:`Session.reset` drops everything.
"""
import logging
from typing import Dict, Optional, Union

from .config import Settings, get_settings
from .crypto import generate_keypair, sign, verify_signature
from .did import resolve_did
from .encoding import decode, encode, parse_encoding
from .errors import DecodeError, InvalidDidFormat
from .keys import export_private_key_bytes, import_private_key
from .transcoder import SignatureTranscoder
from .types import Encoding, ImportFormat, KeyMaterial, KeyType, VerificationResult

logger = logging.getLogger(__name__)


class Session:

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.reset()

    def reset(self) -> None:
        self._keys: Dict[KeyType, KeyMaterial] = {}
        self.public_key_encoding = self.settings.default_encoding
        self.signer = SignatureTranscoder(self.settings.default_encoding)
        self.verifier_encoding = self.settings.default_encoding
        self.last_result: Optional[VerificationResult] = None

    # -- keys ---------------------------------------------------------------

    def keys(self, key_type: Union[KeyType, str]) -> Optional[KeyMaterial]:
        return self._keys.get(KeyType.parse(key_type))

    def _require_keys(self, key_type: Union[KeyType, str]) -> KeyMaterial:
        material = self.keys(key_type)
        if material is None:
            raise LookupError(f'No {KeyType.parse(key_type).value} key loaded')
        return material

    def generate(self, key_type: Union[KeyType, str]) -> KeyMaterial:
        material = generate_keypair(key_type, settings=self.settings)
        self._keys[material.key_type] = material
        self.signer.clear()
        return material

    def import_key(
        self,
        text: str,
        fmt: Union[ImportFormat, str],
        key_type: Union[KeyType, str],
        encoding: Optional[Union[Encoding, str]] = None,
    ) -> KeyMaterial:
        material = import_private_key(text, fmt, key_type, encoding)
        self._keys[material.key_type] = material
        self.signer.clear()
        return material

    def did(self, key_type: Union[KeyType, str]) -> Optional[str]:
        material = self.keys(key_type)
        return material.did if material is not None else None

    def select_public_key_encoding(self, encoding: Union[Encoding, str]) -> None:
        self.public_key_encoding = parse_encoding(encoding)

    def public_key_text(self, key_type: Union[KeyType, str]) -> Optional[str]:
        material = self.keys(key_type)
        if material is None:
            return None
        return encode(material.public_key_bytes(), self.public_key_encoding)

    def private_key_text(self, key_type: Union[KeyType, str]) -> Optional[str]:
        material = self.keys(key_type)
        if material is None:
            return None
        return encode(export_private_key_bytes(material), self.public_key_encoding)

    # -- signing ------------------------------------------------------------

    def sign(self, key_type: Union[KeyType, str], message: str) -> str:
        material = self._require_keys(key_type)
        self.signer.load_bytes(sign(material, message, settings=self.settings))
        return self.signer.text

    def select_signature_encoding(self, encoding: Union[Encoding, str]) -> Optional[str]:
        return self.signer.select(encoding)

    @property
    def signature_text(self) -> Optional[str]:
        return self.signer.text

    # -- verifying ----------------------------------------------------------

    def select_verifier_encoding(self, encoding: Union[Encoding, str]) -> None:
        self.verifier_encoding = parse_encoding(encoding)

    def verify(
        self,
        key_type: Union[KeyType, str],
        message: str,
        signature: str,
        public_key: str,
    ) -> VerificationResult:
        """
        Verify user input. ``signature`` and a bare ``public_key`` are read in
        the verifier encoding; a did:key public key is used as given.
        """
        key_type = KeyType.parse(key_type)
        try:
            sig_bytes = decode(signature.strip(), self.verifier_encoding)
            did = resolve_did(public_key, key_type, self.verifier_encoding)
        except (DecodeError, InvalidDidFormat) as e:
            logger.warning('Verifier input rejected: %s', e)
            self.last_result = VerificationResult(valid=False, error=str(e))
            return self.last_result
        self.last_result = verify_signature(message, sig_bytes, did=did, settings=self.settings)
        return self.last_result
