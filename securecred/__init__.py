"""
SecureCred - Username/Passphrase Registration and Authentication

Salted PBKDF2 credentials for principals kept in a local SQLite store.

Key Features:
- Fresh random salt on every passphrase change
- PBKDF2-HMAC with configurable salt length, iterations, key length,
  digest and encoding (defaults: 32 bytes, 25000, 512 bytes, sha256, hex)
- Hash parameters stored with each credential
- Constant-time verification
- Thread-pool / asyncio offloading of derivation

Components:
- crypto.py: Credential hasher (one file!)
- errors.py: Error kinds
- store.py: SQLite principal store
- auth.py: Register / authenticate / change passphrase
- workers.py: Thread pool and asyncio adapters

Usage:
    from securecred import Authenticator, PrincipalStore

    with PrincipalStore("principals.db") as store:
        auth = Authenticator(store)
        auth.register("tom", "my secret passphrase")
        user = auth.authenticate("tom", "my secret passphrase")
"""

from .auth import AuthOptions, Authenticator
from .crypto import (
    DEFAULT_CONFIG,
    Credential,
    HashConfig,
    check_credential,
    set_credential,
    verify_credential,
)
from .errors import (
    CryptoFailure,
    IncorrectPassphrase,
    MissingIdentifier,
    MissingPassphrase,
    PrincipalExists,
    SecureCredError,
    UnknownIdentifier,
)
from .store import Principal, PrincipalStore
from .workers import CredentialWorker

__version__ = "0.1.0"
__author__ = "SecureCred Team"
