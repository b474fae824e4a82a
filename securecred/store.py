"""
SecureCred - Principal Store

This file handles:
- SQLite database (stores principals and their credential records)
- Lookup of a principal by identifier
- Atomic persistence of (salt, hash, params) with the other attributes
- Unique identifier enforcement (reported as PrincipalExists)

Database structure:
- principals: one row per principal, credential record included
"""

import json
import logging
import sqlite3
import time
import uuid
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .errors import PrincipalExists, SecureCredError


logger = logging.getLogger(__name__)


# =============================================================================
# DATABASE SCHEMA
# =============================================================================

SCHEMA = """
CREATE TABLE IF NOT EXISTS principals (
    id TEXT PRIMARY KEY,
    identifier TEXT NOT NULL UNIQUE,    -- username, or id when none was given
    -- Credential record (always written together)
    salt TEXT NOT NULL,
    passphrase_hash TEXT NOT NULL,
    kdf_params TEXT NOT NULL,           -- JSON: {"kdf": "pbkdf2", "iterations": 25000, ...}
    -- Extra properties supplied at registration or update
    attributes TEXT NOT NULL DEFAULT '{}',
    created_at INTEGER NOT NULL,
    updated_at INTEGER NOT NULL
);
"""

PRAGMAS = """
PRAGMA journal_mode=WAL;
PRAGMA synchronous=FULL;
PRAGMA foreign_keys=ON;
PRAGMA secure_delete=ON;
"""


@dataclass
class Principal:
    """
    One authenticated entity.

    `passphrase` is transient: a raw passphrase waiting to be hashed by
    Authenticator.save(). It is never written to the database.
    """

    identifier: Optional[str] = None
    attributes: Dict = field(default_factory=dict)
    id: Optional[str] = None
    salt: Optional[str] = None
    passphrase_hash: Optional[str] = None
    kdf_params: Optional[Dict] = None
    created_at: Optional[int] = None
    updated_at: Optional[int] = None
    passphrase: Optional[str] = field(default=None, repr=False, compare=False)

    @property
    def is_new(self) -> bool:
        return self.id is None

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "Principal":
        return cls(
            identifier=row['identifier'],
            attributes=json.loads(row['attributes']),
            id=row['id'],
            salt=row['salt'],
            passphrase_hash=row['passphrase_hash'],
            kdf_params=json.loads(row['kdf_params']),
            created_at=row['created_at'],
            updated_at=row['updated_at'],
        )


# =============================================================================
# STORE CLASS
# =============================================================================

class PrincipalStore:
    """
    SQLite-backed storage for principals.

    Usage:
        store = PrincipalStore("principals.db")
        store.open()
        store.insert(principal)
        found = store.find_by_identifier("tom")
        store.close()

    or as a context manager:
        with PrincipalStore("principals.db") as store:
            ...

    A store (its connection) belongs to the thread that opened it.
    """

    def __init__(self, db_path: str):
        self.db_path = db_path
        self.conn: Optional[sqlite3.Connection] = None

    def open(self) -> "PrincipalStore":
        """Connect, apply PRAGMAs and create the schema if needed."""
        if self.conn:
            return self
        self.conn = sqlite3.connect(self.db_path)
        self.conn.row_factory = sqlite3.Row
        self.conn.executescript(PRAGMAS)
        self.conn.executescript(SCHEMA)
        logger.debug("Opened principal store at %s", self.db_path)
        return self

    def close(self) -> None:
        if self.conn:
            self.conn.close()
            self.conn = None
            logger.debug("Closed principal store at %s", self.db_path)

    def __enter__(self) -> "PrincipalStore":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # =========================================================================
    # OPERATIONS
    # =========================================================================

    def insert(self, principal: Principal) -> Principal:
        """
        Store a new principal.

        Assigns id and timestamps. When no identifier is set, the new id
        becomes the identifier.

        Raises:
            PrincipalExists: If the identifier is already taken
        """
        self._require_open()
        self._require_credential(principal)

        generated = principal.identifier is None
        principal.id = str(uuid.uuid4())
        if generated:
            principal.identifier = principal.id
        now = int(time.time())

        try:
            with self.conn:
                self.conn.execute(
                    """INSERT INTO principals (id, identifier, salt, passphrase_hash,
                                              kdf_params, attributes, created_at, updated_at)
                       VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
                    (principal.id, principal.identifier, principal.salt,
                     principal.passphrase_hash, json.dumps(principal.kdf_params),
                     json.dumps(principal.attributes), now, now)
                )
        except sqlite3.IntegrityError as exc:
            principal.id = None
            if generated:
                principal.identifier = None
            raise PrincipalExists() from exc

        principal.created_at = principal.updated_at = now
        return principal

    def update(self, principal: Principal) -> Principal:
        """
        Persist credential record and attributes of an existing principal.

        Everything is written in one transaction: salt and hash can never
        be stored one without the other.
        """
        self._require_open()
        self._require_credential(principal)
        if principal.is_new:
            raise SecureCredError("Principal has not been stored yet")

        now = int(time.time())
        try:
            with self.conn:
                cur = self.conn.execute(
                    """UPDATE principals SET identifier = ?, salt = ?, passphrase_hash = ?,
                                             kdf_params = ?, attributes = ?, updated_at = ?
                       WHERE id = ?""",
                    (principal.identifier, principal.salt, principal.passphrase_hash,
                     json.dumps(principal.kdf_params), json.dumps(principal.attributes),
                     now, principal.id)
                )
        except sqlite3.IntegrityError as exc:
            raise PrincipalExists() from exc

        if cur.rowcount == 0:
            raise SecureCredError(f"Principal {principal.id} not found")
        principal.updated_at = now
        return principal

    def find_by_identifier(self, identifier: str) -> Optional[Principal]:
        self._require_open()
        row = self.conn.execute(
            "SELECT * FROM principals WHERE identifier = ?", (identifier,)
        ).fetchone()
        return Principal.from_row(row) if row else None

    def get(self, principal_id: str) -> Optional[Principal]:
        self._require_open()
        row = self.conn.execute(
            "SELECT * FROM principals WHERE id = ?", (principal_id,)
        ).fetchone()
        return Principal.from_row(row) if row else None

    def delete(self, identifier: str) -> bool:
        """Delete a principal. Returns False if nothing matched."""
        self._require_open()
        with self.conn:
            cur = self.conn.execute(
                "DELETE FROM principals WHERE identifier = ?", (identifier,)
            )
        return cur.rowcount > 0

    def count(self) -> int:
        self._require_open()
        return self.conn.execute("SELECT COUNT(*) FROM principals").fetchone()[0]

    def identifiers(self) -> List[str]:
        """All identifiers, sorted."""
        self._require_open()
        rows = self.conn.execute(
            "SELECT identifier FROM principals ORDER BY identifier"
        ).fetchall()
        return [row['identifier'] for row in rows]

    # =========================================================================
    # INTERNAL HELPERS
    # =========================================================================

    def _require_open(self) -> None:
        if not self.conn:
            raise SecureCredError("Store is closed. Call open() first.")

    @staticmethod
    def _require_credential(principal: Principal) -> None:
        if not principal.salt or not principal.passphrase_hash or not principal.kdf_params:
            raise SecureCredError("Principal has no credential record")
