"""
Reversible obfuscation for the persisted credential blob.

THIS IS NOT ENCRYPTION. The transform XORs a base64 string with a fixed,
public key and base64-encodes the result. Anyone who can read the stored
value and this source file can recover the credentials. It only keeps
secrets from showing up in plain text when someone glances at the file.

Replacing it with real key derivation and authenticated encryption is a
product decision (it needs a user passphrase or an OS keyring), not a
bug fix.

The output is byte-compatible with the browser version of the file
manager: base64(xor(base64(encodeURIComponent(text)), KEY)).
"""

import base64
import binascii
from urllib.parse import quote, unquote

OBFUSCATION_KEY = b"minio-file-manager-2024"

# Characters encodeURIComponent leaves alone besides letters, digits and "_.-~"
_URI_COMPONENT_SAFE = "!*'()"


class DeobfuscationError(ValueError):
    """Raised when a value cannot be reversed by `deobfuscate`."""
    pass


def _xor(data: bytes) -> bytes:
    key_length = len(OBFUSCATION_KEY)
    return bytes(
        byte ^ OBFUSCATION_KEY[index % key_length]
        for index, byte in enumerate(data)
    )


def obfuscate(text: str) -> str:
    encoded = base64.b64encode(quote(text, safe=_URI_COMPONENT_SAFE).encode("ascii"))
    return base64.b64encode(_xor(encoded)).decode("ascii")


def deobfuscate(value: str) -> str:
    """
    Reverse `obfuscate`.

    Raises:
        DeobfuscationError: If the value was not produced by `obfuscate`
            (bad base64 at either layer or non-UTF-8 payload)
    """
    try:
        outer = base64.b64decode(value.encode("ascii"), validate=True)
        inner = base64.b64decode(_xor(outer), validate=True)
        return unquote(inner.decode("ascii"), errors="strict")
    except (binascii.Error, UnicodeError) as e:
        raise DeobfuscationError(f"Stored value is not reversible: {e}") from e
