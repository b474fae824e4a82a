"""
SecureCred - Errors

Every failure the library reports is a SecureCredError subclass, so callers
can catch one type at the integration boundary or single out a kind.

Kinds:
    MissingIdentifier   - no username given where one is required
    UnknownIdentifier   - username does not match a stored principal
    MissingPassphrase   - passphrase absent or empty
    IncorrectPassphrase - passphrase does not match the stored hash
    CryptoFailure       - random source or key derivation failed
    PrincipalExists     - username already taken (unique constraint)
"""


class SecureCredError(Exception):
    """Base class for all SecureCred errors."""

    default_message = "Authentication error"

    def __init__(self, message: str = None):
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return self.args[0]


class MissingIdentifier(SecureCredError):
    default_message = "Username was not specified"


class UnknownIdentifier(SecureCredError):
    default_message = "Unknown username"


class MissingPassphrase(SecureCredError):
    default_message = "Passphrase was not specified"


class IncorrectPassphrase(SecureCredError):
    default_message = "Incorrect passphrase"


class CryptoFailure(SecureCredError):
    """
    Random-byte generation or key derivation failed.

    Never retried: a silent retry could hide entropy starvation.
    The original exception is chained as __cause__.
    """

    default_message = "Credential derivation failed"


class PrincipalExists(SecureCredError):
    default_message = "Username already exists"
