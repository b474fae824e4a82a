"""
SecureCred - Attack Demonstration

Run: python attack_demo.py

What it shows (and why attacks fail):
1) Wrong passphrase is rejected.
2) A stolen hash is not the passphrase, and logging in with it fails.
3) Copying one principal's credential over another's does not give a
   shared password hash (salts differ).
4) Swapping the salt in the database breaks verification.
5) Taking over an existing username by re-registering fails.
6) Brute force cost: time per guess with the default parameters.
"""

import os
import sqlite3
import tempfile
import time

from securecred import crypto
from securecred.auth import Authenticator
from securecred.errors import IncorrectPassphrase, PrincipalExists
from securecred.store import PrincipalStore


LINE = "=" * 70


def section(title: str):
    print(f"\n{LINE}\n{title}\n{LINE}")


def main():
    tmp_dir = tempfile.TemporaryDirectory()
    db_path = os.path.join(tmp_dir.name, "principals.db")
    passphrase = "CorrectHorseBatteryStaple!"

    store = PrincipalStore(db_path).open()
    auth = Authenticator(store)
    alice = auth.register("alice", passphrase, {"email": "alice@example.com"})
    bob = auth.register("bob", passphrase)

    # 1) Wrong passphrase
    section("Attack 1: Wrong passphrase")
    try:
        auth.authenticate("alice", "wrong_passphrase")
        print("Unexpected: wrong passphrase accepted")
    except IncorrectPassphrase as e:
        print(f"Expected failure: {e}")

    # 2) Stolen hash used as passphrase
    section("Attack 2: Logging in with the stolen hash")
    print(f"Stored hash (first 32 chars): {alice.passphrase_hash[:32]}...")
    try:
        auth.authenticate("alice", alice.passphrase_hash)
        print("Unexpected: hash accepted as passphrase")
    except IncorrectPassphrase as e:
        print(f"Expected failure: the hash is not the passphrase ({e})")

    # 3) Same passphrase, different records
    section("Attack 3: Spotting users with the same passphrase")
    same = alice.passphrase_hash == bob.passphrase_hash
    print(f"alice and bob share a passphrase; hashes equal: {same}")
    print("Expected: False, every credential has its own random salt")

    # 4) Salt swap in the database
    section("Attack 4: Swapping salts in the database")
    conn = sqlite3.connect(db_path)
    conn.execute("UPDATE principals SET salt = ? WHERE identifier = 'alice'", (bob.salt,))
    conn.commit()
    conn.close()
    try:
        auth.authenticate("alice", passphrase)
        print("Unexpected: verification survived a salt swap")
    except IncorrectPassphrase as e:
        print(f"Expected failure: salt and hash belong together ({e})")

    # 5) Username takeover
    section("Attack 5: Re-registering an existing username")
    try:
        auth.register("bob", "attacker_passphrase")
        print("Unexpected: username taken over")
    except PrincipalExists as e:
        print(f"Expected failure: {e}")
    auth.authenticate("bob", passphrase)
    print("bob still authenticates with the original passphrase")

    # 6) Brute force cost
    section("Attack 6: Brute force cost per guess")
    config = crypto.DEFAULT_CONFIG
    start = time.perf_counter()
    crypto.verify_credential("guess", bob.salt, bob.passphrase_hash, config)
    elapsed = time.perf_counter() - start
    print(f"PBKDF2-HMAC-{config.digest.upper()}, {config.iterations} iterations, "
          f"{config.keylen}-byte key: {elapsed * 1000:.0f} ms per guess")
    print(f"~{int(1 / elapsed) if elapsed else 0} guesses/second on this machine, per core")

    # Cleanup
    store.close()
    tmp_dir.cleanup()
    print("\nDemo complete. All showcased attacks failed as expected.")


if __name__ == "__main__":
    main()
