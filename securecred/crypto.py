"""
SecureCred - Credential Hasher

This single file contains ALL cryptographic operations of the library:
- Random salt generation
- PBKDF2 key derivation (passphrase + salt -> derived hash)
- Constant-time verification of a candidate passphrase

Credential Record:
    1. salt_len random bytes -> encoded string (the salt)
    2. PBKDF2-HMAC(passphrase, salt string, iterations, keylen) -> derived hash
    3. (salt, derived hash) are stored; the passphrase never is

Every function is a pure transformation. Nothing here touches the disk,
so all of it is safe to call from several threads at once.
"""

import base64
import binascii
import hmac
import os
from dataclasses import asdict, dataclass, fields
from typing import NamedTuple, Optional

from cryptography.exceptions import InternalError, UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from .errors import CryptoFailure, IncorrectPassphrase, MissingPassphrase


# =============================================================================
# Configuration
# =============================================================================

SALT_LEN = 32            # random bytes per salt
ITERATIONS = 25000       # PBKDF2 rounds
KEYLEN = 512             # derived key length in bytes
ENCODING = "hex"         # how salt and hash are turned into strings
DIGEST = "sha256"        # HMAC digest inside PBKDF2

DIGESTS = {
    "sha1": hashes.SHA1,
    "sha256": hashes.SHA256,
    "sha512": hashes.SHA512,
}

ENCODINGS = ("hex", "base64", "base64url")


@dataclass(frozen=True)
class HashConfig:
    """
    Parameters of the credential hasher.

    A credential can only be verified with the exact parameters that
    produced it, so the store keeps to_dict() next to every hash.

    The default digest is sha256 and deliberately differs from the
    mongoose-plugin-auth records this scheme comes from: those were written
    by Node.js crypto.pbkdf2 without an explicit digest, i.e. sha1.
    Use digest="sha1" to verify such records.
    """

    salt_len: int = SALT_LEN
    iterations: int = ITERATIONS
    keylen: int = KEYLEN
    encoding: str = ENCODING
    digest: str = DIGEST

    def __post_init__(self):
        if self.salt_len < 1:
            raise ValueError(f"salt_len must be positive, got {self.salt_len}")
        if self.iterations < 1:
            raise ValueError(f"iterations must be positive, got {self.iterations}")
        if self.keylen < 1:
            raise ValueError(f"keylen must be positive, got {self.keylen}")
        if self.encoding not in ENCODINGS:
            raise ValueError(f"Unsupported encoding: {self.encoding!r}")
        if self.digest not in DIGESTS:
            raise ValueError(f"Unsupported digest: {self.digest!r}")

    def to_dict(self) -> dict:
        return {"kdf": "pbkdf2", **asdict(self)}

    @classmethod
    def from_dict(cls, params: dict) -> "HashConfig":
        """Build a config from stored params; unknown keys are ignored."""
        names = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in params.items() if k in names})


DEFAULT_CONFIG = HashConfig()


class Credential(NamedTuple):
    """Salt and derived hash, always produced and stored together."""
    salt: str
    derived_hash: str


# =============================================================================
# Encoding
# =============================================================================

def encode_bytes(data: bytes, encoding: str = ENCODING) -> str:
    """Encode raw bytes as an ASCII string."""
    if encoding == "hex":
        return data.hex()
    if encoding == "base64":
        return base64.b64encode(data).decode("ascii")
    if encoding == "base64url":
        return base64.urlsafe_b64encode(data).decode("ascii")
    raise ValueError(f"Unsupported encoding: {encoding!r}")


def decode_bytes(text: str, encoding: str = ENCODING) -> bytes:
    """
    Inverse of encode_bytes().

    Raises:
        ValueError: If text is not valid for the encoding
    """
    try:
        if encoding == "hex":
            return bytes.fromhex(text)
        if encoding == "base64":
            return base64.b64decode(text, validate=True)
        if encoding == "base64url":
            return base64.urlsafe_b64decode(text.encode("ascii"))
    except binascii.Error as exc:
        raise ValueError(f"Invalid {encoding} data") from exc
    raise ValueError(f"Unsupported encoding: {encoding!r}")


# =============================================================================
# Key Derivation
# =============================================================================

def _require_passphrase(passphrase: Optional[str]) -> str:
    if passphrase is None or passphrase == "":
        raise MissingPassphrase()
    if not isinstance(passphrase, str):
        raise TypeError(f"passphrase must be str, not {type(passphrase).__name__}")
    return passphrase


def generate_salt(config: HashConfig = DEFAULT_CONFIG) -> str:
    """
    Generate a fresh random salt.

    os.urandom reads the kernel CSPRNG and is safe to call concurrently.

    Returns:
        config.salt_len random bytes, encoded with config.encoding

    Raises:
        CryptoFailure: If the random source is unavailable
    """
    try:
        raw = os.urandom(config.salt_len)
    except (OSError, NotImplementedError) as exc:
        raise CryptoFailure("Random salt generation failed") from exc
    return encode_bytes(raw, config.encoding)


def derive_hash(passphrase: str, salt: str, config: HashConfig = DEFAULT_CONFIG) -> str:
    """
    Derive the stored hash from a passphrase and an encoded salt.

    The encoded salt string itself (UTF-8) is fed to PBKDF2, not the raw
    random bytes. Stored records depend on this, keep it stable.

    Args:
        passphrase: Raw passphrase
        salt: Encoded salt from generate_salt()
        config: Parameters (must match those used at set time)

    Returns:
        config.keylen derived bytes, encoded with config.encoding

    Raises:
        UnicodeEncodeError: If passphrase or salt is not valid UTF-8 text
            (e.g. lone surrogates from surrogateescape)
        CryptoFailure: If the KDF backend rejects the parameters or fails
    """
    secret = passphrase.encode("utf-8")
    salt_bytes = salt.encode("utf-8")
    try:
        kdf = PBKDF2HMAC(
            algorithm=DIGESTS[config.digest](),
            length=config.keylen,
            salt=salt_bytes,
            iterations=config.iterations,
        )
        raw = kdf.derive(secret)
    except (ValueError, UnsupportedAlgorithm, InternalError) as exc:
        raise CryptoFailure() from exc
    return encode_bytes(raw, config.encoding)


# =============================================================================
# Credential Operations
# =============================================================================

def set_credential(passphrase: str, config: HashConfig = DEFAULT_CONFIG) -> Credential:
    """
    Create a new credential record for a passphrase.

    A new salt is drawn on every call, so hashing the same passphrase
    twice gives two unrelated records.

    Raises:
        MissingPassphrase: If passphrase is None or empty
        CryptoFailure: If salt generation or derivation fails
    """
    passphrase = _require_passphrase(passphrase)
    salt = generate_salt(config)
    return Credential(salt, derive_hash(passphrase, salt, config))


def verify_credential(
    passphrase: str,
    salt: str,
    expected_hash: str,
    config: HashConfig = DEFAULT_CONFIG
) -> bool:
    """
    Check a candidate passphrase against a stored credential.

    Returns:
        True if the re-derived hash equals expected_hash

    Raises:
        MissingPassphrase: If passphrase is None or empty (checked first)
        CryptoFailure: If derivation fails
    """
    passphrase = _require_passphrase(passphrase)
    if not salt or not expected_hash:
        return False
    derived = derive_hash(passphrase, salt, config)
    return constant_compare(derived.encode("ascii"), expected_hash.encode("utf-8"))


def check_credential(
    passphrase: str,
    salt: str,
    expected_hash: str,
    config: HashConfig = DEFAULT_CONFIG
) -> None:
    """Raising variant of verify_credential(): IncorrectPassphrase on mismatch."""
    if not verify_credential(passphrase, salt, expected_hash, config):
        raise IncorrectPassphrase()


# =============================================================================
# Helpers
# =============================================================================

def constant_compare(a: bytes, b: bytes) -> bool:
    """
    Compare two byte strings in constant time.

    Normal comparison (a == b) stops at the first mismatch and leaks
    how many leading bytes matched through timing.
    """
    return hmac.compare_digest(a, b)
