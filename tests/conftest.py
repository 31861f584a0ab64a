import pytest

from sigsandbox.config import Settings
from sigsandbox.crypto import generate_keypair
from sigsandbox.keys import import_private_key
from sigsandbox.encoding import encode

# Ed25519 seed 0x00...01
SEED_ONE = bytes(31) + b'\x01'


@pytest.fixture(scope='session')
def settings():
    return Settings()


@pytest.fixture(scope='session')
def rsa_keys(settings):
    # RSA generation is slow; share one key across the run
    return generate_keypair('rsa', settings=settings)


@pytest.fixture
def ed_keys():
    return import_private_key(encode(SEED_ONE, 'base64url'), 'raw', 'ed25519')
