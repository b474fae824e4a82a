"""
SecureCred - Interactive Menu

Main user interface for a principal store.
Features:
- Register principals (with a username or a generated id)
- Authenticate
- Change passphrase
- List/delete principals
"""

import getpass
import json
import logging
import os
from datetime import datetime

from securecred.auth import Authenticator
from securecred.errors import SecureCredError
from securecred.store import PrincipalStore

DEFAULT_STORE_PATH = os.path.join(os.path.expanduser("~"), ".securecred", "principals.db")

def clear_screen():
    try:
        os.system("cls" if os.name == "nt" else "clear")
    except OSError:
        pass

def pause():
    input("\nPress Enter to continue...")

def choose_store_path(current=None):
    default = current or DEFAULT_STORE_PATH
    print(f"Store file path [{default}]: ", end="")
    return input().strip() or default

def ensure_store_dir(path):
    d = os.path.dirname(path)
    if d and not os.path.exists(d):
        os.makedirs(d, exist_ok=True)

def open_store(store, store_path):
    if store:
        return store
    ensure_store_dir(store_path)
    return PrincipalStore(store_path).open()

def ask_new_passphrase():
    while True:
        pw = getpass.getpass("Passphrase: ")
        pw2 = getpass.getpass("Confirm: ")
        if pw != pw2:
            print("Passphrases don't match.\n")
            continue
        return pw

def ask_attributes():
    raw = input("Extra attributes as JSON (optional): ").strip()
    if not raw:
        return None
    try:
        attributes = json.loads(raw)
    except ValueError:
        print("Not valid JSON, ignored.")
        return None
    if not isinstance(attributes, dict):
        print("Attributes must be a JSON object, ignored.")
        return None
    return attributes

def show_principal(principal):
    print(f"\n  ID:         {principal.id}")
    print(f"  Username:   {principal.identifier}")
    for key, value in principal.attributes.items():
        print(f"  {key + ':':<11} {value}")
    print(f"  Created:    {datetime.fromtimestamp(principal.created_at)}")
    print(f"  Updated:    {datetime.fromtimestamp(principal.updated_at)}")

def cmd_register(store, store_path, anonymous=False):
    clear_screen()
    print("=== Register ===\n")
    store = open_store(store, store_path)
    username = None
    if not anonymous:
        username = input("Username: ").strip()
    passphrase = ask_new_passphrase()
    attributes = ask_attributes()
    auth = Authenticator(store)
    print("\nHashing...")
    try:
        if anonymous:
            principal = auth.register_anonymous(passphrase, attributes)
        else:
            principal = auth.register(username, passphrase, attributes)
        print("\n✓ Registered!")
        show_principal(principal)
    except SecureCredError as e:
        print(f"ERROR: {e}")
    pause()
    return store

def cmd_authenticate(store, store_path):
    clear_screen()
    print("=== Authenticate ===\n")
    store = open_store(store, store_path)
    username = input("Username or ID: ").strip()
    passphrase = getpass.getpass("Passphrase: ")
    try:
        principal = Authenticator(store).authenticate(username, passphrase)
        print("\n✓ Authenticated.")
        show_principal(principal)
    except SecureCredError as e:
        print(f"\n✗ {e}")
    pause()
    return store

def cmd_change_passphrase(store, store_path):
    clear_screen()
    print("=== Change Passphrase ===\n")
    store = open_store(store, store_path)
    username = input("Username or ID: ").strip()
    current = getpass.getpass("Current passphrase: ")
    print("\nNew passphrase:")
    new = ask_new_passphrase()
    try:
        Authenticator(store).set_passphrase(username, current, new)
        print("\n✓ Passphrase changed (new salt generated).")
    except SecureCredError as e:
        print(f"\n✗ {e}")
    pause()
    return store

def cmd_list(store, store_path):
    clear_screen()
    print("=== Principals ===\n")
    store = open_store(store, store_path)
    identifiers = store.identifiers()
    if not identifiers:
        print("No principals.")
    for i, identifier in enumerate(identifiers, 1):
        print(f"{i:3}) {identifier}")
    pause()
    return store

def cmd_delete(store, store_path):
    clear_screen()
    print("=== Delete Principal ===\n")
    store = open_store(store, store_path)
    username = input("Username or ID: ").strip()
    if not username:
        print("Cancelled.")
        pause()
        return store
    if input(f"Delete '{username}'? [y/N]: ").strip().lower() not in ('y', 'yes'):
        print("Cancelled.")
    elif Authenticator(store).remove(username):
        print("\n✓ Deleted.")
    else:
        print("\nUnknown username.")
    pause()
    return store

def printMenu(store, store_path):
    print("SecureCred - Interactive Menu")
    print("=" * 40)
    print(f"Store: {store_path}")
    print(f"Status: {'OPEN' if store else 'CLOSED'}")
    print("\n 1) Register")
    print(" 2) Register (generated id)")
    print(" 3) Authenticate")
    print(" 4) Change passphrase")
    print(" 5) List principals")
    print(" 6) Delete principal")
    print(" 7) Change store path")
    print(" 0) Exit")

def main_menu():
    store = None
    store_path = os.environ.get("SECURECRED_STORE", DEFAULT_STORE_PATH)
    while True:
        clear_screen()
        printMenu(store, store_path)
        c = input("\n> ").strip()
        if c == '1':
            store = cmd_register(store, store_path)
        elif c == '2':
            store = cmd_register(store, store_path, anonymous=True)
        elif c == '3':
            store = cmd_authenticate(store, store_path)
        elif c == '4':
            store = cmd_change_passphrase(store, store_path)
        elif c == '5':
            store = cmd_list(store, store_path)
        elif c == '6':
            store = cmd_delete(store, store_path)
        elif c == '7':
            if store:
                store.close()
                store = None
            store_path = choose_store_path(store_path)
            pause()
        elif c == '0':
            if store:
                store.close()
            print("\nGoodbye!")
            break

def main():
    logging.basicConfig(level=os.environ.get("SECURECRED_LOG_LEVEL", "WARNING"))
    try:
        main_menu()
    except KeyboardInterrupt:
        print("\nExiting...")

if __name__ == "__main__":
    main()
