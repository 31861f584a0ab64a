"""
sigsandbox command line.

Keys are never stored: commands that sign take the private key on every
invocation, in any of the import formats.
"""
import json
import logging
import sys
from dataclasses import asdict
from typing import Optional

import click

from .config import get_settings
from .crypto import generate_keypair, sign
from .did import did_from_public_key, public_key_from_did
from .encoding import decode, encode, from_multibase, parse_encoding, to_multibase
from .errors import SandboxError
from .keys import encoded_keys, export_private_jwk, export_private_pem, import_private_key
from .multikey import decode_multikey, encode_multikey
from .session import Session
from .types import Encoding, ImportFormat, KeyType
from .ucan import inspect_ucan

ENCODINGS = click.Choice([e.value for e in Encoding] + ['base58'], case_sensitive=False)
KEY_TYPES = click.Choice(['ed25519', 'ecc', 'rsa'], case_sensitive=False)
FORMATS = click.Choice([f.value for f in ImportFormat], case_sensitive=False)


def _read_arg(value: str) -> str:
    """'-' reads the value from stdin."""
    if value == '-':
        return sys.stdin.read()
    return value


def _emit(data: dict, as_json: bool) -> None:
    if as_json:
        click.echo(json.dumps(data, indent=2))
        return
    for k, v in data.items():
        click.echo(f'{k}: {v}')


class _Group(click.Group):
    def invoke(self, ctx):
        try:
            return super().invoke(ctx)
        except SandboxError as e:
            raise click.ClickException(f'{type(e).__name__}: {e}') from e


@click.group(cls=_Group)
@click.option('--log-level', default=None, help='Overrides SIGSANDBOX_LOG_LEVEL.')
def main(log_level: Optional[str]) -> None:
    """Generate keys, sign, verify and transcode key material."""
    logging.basicConfig(
        level=(log_level or get_settings().log_level).upper(),
        format='%(levelname)s %(name)s: %(message)s',
    )


@main.command()
@click.option('--type', 'key_type', type=KEY_TYPES, default='ed25519')
@click.option('--encoding', type=ENCODINGS, default=None)
@click.option('--jwk', 'show_jwk', is_flag=True, help='Also print the private JWK.')
@click.option('--pem', 'show_pem', is_flag=True, help='Also print the private key as PEM.')
@click.option('--json', 'as_json', is_flag=True)
def keygen(key_type, encoding, show_jwk, show_pem, as_json):
    """Generate a keypair and print its DID and encoded keys."""
    material = generate_keypair(key_type)
    enc = parse_encoding(encoding) if encoding else get_settings().default_encoding
    out = {
        'type': material.key_type.value,
        'did': material.did,
        'public_key': encoded_keys(material, 'public')[enc],
        'private_key': encoded_keys(material, 'private')[enc],
        'encoding': enc.value,
    }
    if show_jwk:
        out['jwk'] = json.dumps(export_private_jwk(material))
    if show_pem:
        out['pem'] = export_private_pem(material)
    _emit(out, as_json)


@main.command('import-key')
@click.argument('key_text')
@click.option('--format', 'fmt', type=FORMATS, default='raw')
@click.option('--type', 'key_type', type=KEY_TYPES, default='ed25519')
@click.option('--encoding', type=ENCODINGS, default=None, help='Encoding of raw/pkcs8 input.')
@click.option('--json', 'as_json', is_flag=True)
def import_key(key_text, fmt, key_type, encoding, as_json):
    """Import a private key ('-' for stdin) and print its public key and DID."""
    material = import_private_key(_read_arg(key_text), fmt, key_type, encoding)
    _emit({
        'type': material.key_type.value,
        'did': material.did,
        'public_key': encode(material.public_key_bytes(), get_settings().default_encoding),
    }, as_json)


@main.command('sign')
@click.argument('message')
@click.option('--key', 'key_text', required=True, help="Private key text, '-' for stdin.")
@click.option('--format', 'fmt', type=FORMATS, default='raw')
@click.option('--type', 'key_type', type=KEY_TYPES, default='ed25519')
@click.option('--key-encoding', type=ENCODINGS, default=None)
@click.option('--encoding', type=ENCODINGS, default=None, help='Signature encoding.')
@click.option('--json', 'as_json', is_flag=True)
def sign_cmd(message, key_text, fmt, key_type, key_encoding, encoding, as_json):
    """Sign MESSAGE with an imported private key."""
    material = import_private_key(_read_arg(key_text), fmt, key_type, key_encoding)
    enc = parse_encoding(encoding) if encoding else get_settings().default_encoding
    _emit({
        'did': material.did,
        'signature': encode(sign(material, message), enc),
        'encoding': enc.value,
    }, as_json)


@main.command('verify')
@click.argument('message')
@click.option('--signature', required=True)
@click.option('--public-key', required=True, help='did:key or encoded public key.')
@click.option('--type', 'key_type', type=KEY_TYPES, default='ed25519')
@click.option('--encoding', type=ENCODINGS, default=None,
              help='Encoding of the signature and of a bare public key.')
@click.option('--json', 'as_json', is_flag=True)
def verify_cmd(message, signature, public_key, key_type, encoding, as_json):
    """Verify a signature over MESSAGE. Exit status 1 when not valid."""
    session = Session()
    if encoding:
        session.select_verifier_encoding(encoding)
    result = session.verify(key_type, message, signature, public_key)
    _emit(asdict(result), as_json)
    if not result.valid:
        sys.exit(1)


@main.command('did')
@click.argument('value')
@click.option('--type', 'key_type', type=KEY_TYPES, default='ed25519')
@click.option('--encoding', type=ENCODINGS, default='base64pad')
@click.option('--multikey', is_flag=True, help='Print the multikey instead of the DID.')
@click.option('--decode', 'decode_multikey_flag', is_flag=True, help='Treat VALUE as a multikey to decode.')
@click.option('--json', 'as_json', is_flag=True)
def did_cmd(value, key_type, encoding, multikey, decode_multikey_flag, as_json):
    """
    Derive a did:key from an encoded public key, or decode a did:key or
    multikey back into its key type and public key.
    """
    value = value.strip()
    if value.startswith('did:key:') or decode_multikey_flag:
        kt, public_key = public_key_from_did(value) if value.startswith('did:') else decode_multikey(value)
        _emit({'type': kt.value, 'public_key': encode(public_key, encoding)}, as_json)
        return
    kt = KeyType.parse(key_type)
    public_key = decode(value, encoding)
    if multikey:
        _emit({'multikey': encode_multikey(public_key, kt)}, as_json)
    else:
        _emit({'did': did_from_public_key(public_key, kt)}, as_json)


@main.command()
@click.argument('text')
@click.option('--from', 'source', type=ENCODINGS, default=None,
              help='Source encoding; omit to read a multibase prefix.')
@click.option('--to', 'target', type=ENCODINGS, required=True)
@click.option('--multibase', is_flag=True, help='Prefix the output with its multibase code.')
def transcode(text, source, target, multibase):
    """Re-encode TEXT from one encoding to another."""
    if source:
        data = decode(text.strip(), source)
    else:
        _, data = from_multibase(text.strip())
    if multibase:
        click.echo(to_multibase(data, target))
    else:
        click.echo(encode(data, target))


@main.command()
@click.argument('token')
@click.option('--json', 'as_json', is_flag=True)
def ucan(token, as_json):
    """Validate a UCAN token ('-' for stdin) and show its details."""
    result, details = inspect_ucan(_read_arg(token))
    out = asdict(result)
    if details is not None:
        out.update(asdict(details))
        if not as_json:
            out['capabilities'] = json.dumps(details.capabilities)
    _emit(out, as_json)
    if not result.valid:
        sys.exit(1)


if __name__ == '__main__':
    main()
