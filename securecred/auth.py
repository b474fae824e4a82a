"""
SecureCred - Authenticator

Registration and authentication on top of the credential hasher and the
principal store.

Flows:
    register            username + passphrase -> new principal
    register_anonymous  passphrase only; the generated id is the username
    authenticate        username + passphrase -> stored principal
    set_passphrase      authenticate, then change the passphrase
    change_passphrase   new salt + hash for an already loaded principal

Saving a principal follows two distinct paths:
    - new principal without passphrase     -> MissingPassphrase
    - existing principal without passphrase -> credential left untouched
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional, Type

from . import crypto
from .errors import (
    IncorrectPassphrase,
    MissingIdentifier,
    MissingPassphrase,
    PrincipalExists,
    SecureCredError,
    UnknownIdentifier,
)
from .store import Principal, PrincipalStore


logger = logging.getLogger(__name__)


@dataclass
class AuthOptions:
    """
    Behaviour switches for the Authenticator.

    Attributes:
        require_identifier: register() refuses principals without a username
        messages: Per error class message overrides, e.g.
            {UnknownIdentifier: "No such account"}
    """

    require_identifier: bool = True
    messages: Dict[Type[SecureCredError], str] = field(default_factory=dict)


class Authenticator:
    """
    Usage:
        store = PrincipalStore("principals.db").open()
        auth = Authenticator(store)

        auth.register("tom", "my secret passphrase", {"email": "tom@jerry.com"})
        user = auth.authenticate("tom", "my secret passphrase")
        auth.change_passphrase(user, "my new secret passphrase")
    """

    def __init__(
        self,
        store: PrincipalStore,
        config: crypto.HashConfig = crypto.DEFAULT_CONFIG,
        options: Optional[AuthOptions] = None
    ):
        self.store = store
        self.config = config
        self.options = options or AuthOptions()

    # =========================================================================
    # REGISTRATION
    # =========================================================================

    def register(self, identifier: str, passphrase: str, attributes: Optional[Dict] = None) -> Principal:
        """
        Register a new principal.

        Raises:
            MissingPassphrase: If passphrase is absent (checked first)
            MissingIdentifier: If identifier is absent and required
            PrincipalExists: If the identifier is taken
        """
        principal = Principal(identifier=identifier, attributes=dict(attributes or {}))
        principal.passphrase = passphrase
        return self.save(principal)

    def register_anonymous(self, passphrase: str, attributes: Optional[Dict] = None) -> Principal:
        """Register without a username; the store-assigned id becomes the identifier."""
        principal = Principal(attributes=dict(attributes or {}))
        principal.passphrase = passphrase
        return self._save(principal, require_identifier=False)

    def save(self, principal: Principal) -> Principal:
        """
        Insert or update a principal, hashing a pending passphrase first.

        A pending passphrase (principal.passphrase) is replaced by a fresh
        salt and hash. An existing principal without one keeps its
        credential record as is.
        """
        return self._save(principal, require_identifier=self.options.require_identifier)

    # =========================================================================
    # AUTHENTICATION
    # =========================================================================

    def authenticate(self, identifier: str, passphrase: str) -> Principal:
        """
        Look up a principal by identifier and check the passphrase.

        Raises:
            MissingIdentifier: identifier is None or blank
            UnknownIdentifier: no principal matches (non-strings are compared as str)
            MissingPassphrase, IncorrectPassphrase: see verify_principal()
        """
        identifier = self._normalize_identifier(identifier)
        if identifier is None:
            raise self._error(MissingIdentifier)

        principal = self.store.find_by_identifier(identifier)
        if principal is None:
            logger.info("Authentication failed: unknown identifier")
            raise self._error(UnknownIdentifier)

        return self.verify_principal(principal, passphrase)

    def verify_principal(self, principal: Principal, passphrase: str) -> Principal:
        """
        Check a passphrase against an already loaded principal.

        The parameters stored with the credential are used, so records
        written under older defaults keep verifying.
        """
        if passphrase is None or passphrase == "":
            raise self._error(MissingPassphrase)

        config = self._config_for(principal)
        if not crypto.verify_credential(passphrase, principal.salt, principal.passphrase_hash, config):
            logger.info("Authentication failed for principal %s: incorrect passphrase", principal.id)
            raise self._error(IncorrectPassphrase)

        logger.debug("Authenticated principal %s", principal.id)
        return principal

    # =========================================================================
    # PASSPHRASE CHANGES
    # =========================================================================

    def set_passphrase(
        self,
        identifier: str,
        passphrase: str,
        new_passphrase: str,
        attributes: Optional[Dict] = None
    ) -> Principal:
        """Authenticate with the current passphrase, then replace it."""
        principal = self.authenticate(identifier, passphrase)
        return self.change_passphrase(principal, new_passphrase, attributes)

    def change_passphrase(
        self,
        principal: Principal,
        new_passphrase: str,
        attributes: Optional[Dict] = None
    ) -> Principal:
        """
        Replace the passphrase of a principal (new salt, new hash).

        Raises:
            MissingPassphrase: If new_passphrase is absent
        """
        if new_passphrase is None or new_passphrase == "":
            raise self._error(MissingPassphrase)
        principal.passphrase = new_passphrase
        if attributes:
            principal.attributes.update(attributes)
        return self.save(principal)

    def update_attributes(self, principal: Principal, attributes: Dict) -> Principal:
        """Save extra properties; the credential record is left unchanged."""
        principal.attributes.update(attributes)
        return self.save(principal)

    def remove(self, identifier: str) -> bool:
        removed = self.store.delete(identifier)
        if removed:
            logger.info("Removed principal %s", identifier)
        return removed

    # =========================================================================
    # INTERNAL HELPERS
    # =========================================================================

    def _save(self, principal: Principal, require_identifier: bool) -> Principal:
        principal.identifier = self._normalize_identifier(principal.identifier)

        pending = principal.passphrase
        if principal.is_new:
            if pending is None or pending == "":
                raise self._error(MissingPassphrase)
            if principal.identifier is None and require_identifier:
                raise self._error(MissingIdentifier)
        elif pending == "":
            raise self._error(MissingPassphrase)

        previous = (principal.salt, principal.passphrase_hash, principal.kdf_params)
        if pending is not None:
            salt, derived_hash = crypto.set_credential(pending, self.config)
            principal.salt = salt
            principal.passphrase_hash = derived_hash
            principal.kdf_params = self.config.to_dict()

        try:
            if principal.is_new:
                self.store.insert(principal)
                logger.info("Registered principal %s", principal.id)
            else:
                self.store.update(principal)
                if pending is not None:
                    logger.info("Changed passphrase of principal %s", principal.id)
        except SecureCredError as exc:
            # Nothing was written: the object keeps matching the stored record
            principal.salt, principal.passphrase_hash, principal.kdf_params = previous
            if isinstance(exc, PrincipalExists):
                raise self._error(PrincipalExists) from exc
            raise

        principal.passphrase = None
        return principal

    @staticmethod
    def _normalize_identifier(identifier) -> Optional[str]:
        """Usernames are stored as trimmed strings; blank means missing."""
        if identifier is None:
            return None
        return str(identifier).strip() or None

    def _config_for(self, principal: Principal) -> crypto.HashConfig:
        if principal.kdf_params:
            return crypto.HashConfig.from_dict(principal.kdf_params)
        return self.config

    def _error(self, kind: Type[SecureCredError]) -> SecureCredError:
        return kind(self.options.messages.get(kind))
