from typing import Optional, Union

from .encoding import EncodedBytes, parse_encoding
from .types import Encoding


class SignatureTranscoder:
    """
    Holds the current signature and shows it in whichever encoding was
    selected last.
    """

    def __init__(self, encoding: Union[Encoding, str] = Encoding.BASE64PAD):
        self._encoding = parse_encoding(encoding)
        self._signature: Optional[EncodedBytes] = None

    @property
    def encoding(self) -> Encoding:
        return self._encoding

    @property
    def signature(self) -> Optional[bytes]:
        return self._signature.data if self._signature is not None else None

    @property
    def text(self) -> Optional[str]:
        if self._signature is None:
            return None
        return self._signature.as_string(self._encoding)

    def select(self, encoding: Union[Encoding, str]) -> Optional[str]:
        self._encoding = parse_encoding(encoding)
        return self.text

    def load_bytes(self, signature: bytes) -> None:
        self._signature = EncodedBytes(signature)

    def load_text(self, text: str, encoding: Optional[Union[Encoding, str]] = None) -> bytes:
        """Read a signature typed by the user; encoding defaults to the selected one."""
        enc = parse_encoding(encoding) if encoding is not None else self._encoding
        self._signature = EncodedBytes.from_text(text.strip(), enc)
        return self._signature.data

    def clear(self) -> None:
        self._signature = None
