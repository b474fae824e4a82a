"""
SecureCred - Credential Worker

PBKDF2 is CPU-bound and deliberately slow. Request handlers should not run
it inline: CredentialWorker moves derivation onto a thread pool and hands
back futures, or awaitables for asyncio code.

An in-flight derivation is never cancelled. Partial derivation state has
no meaning, so shutdown() waits for running jobs to finish.
"""

import asyncio
import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Optional

from . import crypto


logger = logging.getLogger(__name__)


class CredentialWorker:
    """
    Usage:
        with CredentialWorker(max_workers=4) as worker:
            future = worker.submit_set("my secret passphrase")
            salt, derived_hash = future.result()

        # asyncio
        worker = CredentialWorker()
        credential = await worker.set_credential("my secret passphrase")
        ok = await worker.verify_credential("my secret passphrase", *credential)
        worker.shutdown()

    Futures expose add_done_callback() for callback-style callers.
    """

    def __init__(self, config: Optional[crypto.HashConfig] = None, max_workers: Optional[int] = None):
        self.config = config or crypto.DEFAULT_CONFIG
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="securecred"
        )

    def submit_set(self, passphrase: str) -> "Future[crypto.Credential]":
        return self._executor.submit(crypto.set_credential, passphrase, self.config)

    def submit_verify(self, passphrase: str, salt: str, expected_hash: str) -> "Future[bool]":
        return self._executor.submit(
            crypto.verify_credential, passphrase, salt, expected_hash, self.config
        )

    async def set_credential(self, passphrase: str) -> crypto.Credential:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            self._executor, crypto.set_credential, passphrase, self.config
        )

    async def verify_credential(self, passphrase: str, salt: str, expected_hash: str) -> bool:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            self._executor, crypto.verify_credential, passphrase, salt, expected_hash, self.config
        )

    def shutdown(self, wait: bool = True) -> None:
        # cancel_futures stays False: queued jobs still run
        self._executor.shutdown(wait=wait)
        logger.debug("Credential worker shut down")

    def __enter__(self) -> "CredentialWorker":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown()
