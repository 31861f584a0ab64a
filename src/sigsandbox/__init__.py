from .types import Encoding, ImportFormat, KeyMaterial, KeyType, VerificationResult
from .errors import (
    DecodeError,
    InvalidDidFormat,
    InvalidKeyFormat,
    InvalidKeyLength,
    InvalidMultikey,
    InvalidUcan,
    SandboxError,
    UnknownMultibasePrefix,
    VerificationFailure,
)
from .encoding import EncodedBytes, decode, encode, from_multibase, to_multibase, transcode
from .multikey import decode_multikey, encode_multikey
from .did import did_from_public_key, public_key_from_did, resolve_did
from .keys import export_private_key_bytes, import_private_key
from .crypto import generate_keypair, sign, verify, verify_signature
from .transcoder import SignatureTranscoder
from .session import Session

__all__ = [
    'Encoding',
    'ImportFormat',
    'KeyMaterial',
    'KeyType',
    'VerificationResult',
    'SandboxError',
    'DecodeError',
    'UnknownMultibasePrefix',
    'InvalidDidFormat',
    'InvalidMultikey',
    'InvalidKeyFormat',
    'InvalidKeyLength',
    'VerificationFailure',
    'InvalidUcan',
    'EncodedBytes',
    'encode',
    'decode',
    'transcode',
    'to_multibase',
    'from_multibase',
    'encode_multikey',
    'decode_multikey',
    'did_from_public_key',
    'public_key_from_did',
    'resolve_did',
    'import_private_key',
    'export_private_key_bytes',
    'generate_keypair',
    'sign',
    'verify',
    'verify_signature',
    'SignatureTranscoder',
    'Session',
]
