import os
from dataclasses import dataclass
from functools import lru_cache

from .encoding import parse_encoding
from .types import Encoding


def _env_int(name: str, default: int) -> int:
    v = os.environ.get(name)
    if not v:
        return default
    try:
        return int(v)
    except ValueError:
        raise ValueError(f'{name} must be an integer, got {v!r}') from None


@dataclass(frozen=True)
class Settings:
    rsa_key_size: int = 2048
    rsa_public_exponent: int = 65537
    rsa_pss_salt_length: int = 32
    default_encoding: Encoding = Encoding.BASE64PAD
    ucan_clock_skew: int = 60  # seconds
    log_level: str = 'WARNING'

    @classmethod
    def from_env(cls) -> 'Settings':
        return cls(
            rsa_key_size=_env_int('SIGSANDBOX_RSA_KEY_SIZE', cls.rsa_key_size),
            rsa_public_exponent=_env_int('SIGSANDBOX_RSA_PUBLIC_EXPONENT', cls.rsa_public_exponent),
            rsa_pss_salt_length=_env_int('SIGSANDBOX_RSA_PSS_SALT_LENGTH', cls.rsa_pss_salt_length),
            default_encoding=parse_encoding(
                os.environ.get('SIGSANDBOX_DEFAULT_ENCODING', cls.default_encoding.value)
            ),
            ucan_clock_skew=_env_int('SIGSANDBOX_UCAN_CLOCK_SKEW', cls.ucan_clock_skew),
            log_level=os.environ.get('SIGSANDBOX_LOG_LEVEL', cls.log_level).upper(),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()
