import base64
import json
import os
import queue
import threading
from typing import Optional

from base58 import b58decode
from solana.rpc.api import Client
from solana.rpc.commitment import Confirmed
from solana.rpc.types import TxOpts
from solders.keypair import Keypair
from solders.pubkey import Pubkey as PublicKey
from solders.signature import Signature
from solders.transaction import VersionedTransaction

from . import config
from .errors import ConfigError, TransactionError, UnconfirmedTransactionError


def make_client(cfg: config.Config) -> Client:
    return Client(cfg.rpc_url, timeout=cfg.rpc_timeout_sec)


def _rpc_call(method, *args, timeout: Optional[float] = None, **kwargs):
    """Run an RPC client method in a thread with timeout to avoid hangs."""
    if timeout is None:
        timeout = 30.0
    q: "queue.Queue[tuple[bool, object]]" = queue.Queue(maxsize=1)

    def _runner():
        try:
            res = method(*args, **kwargs)
            q.put((True, res))
        except Exception as e:
            q.put((False, e))

    th = threading.Thread(target=_runner, daemon=True)
    th.start()
    try:
        ok, val = q.get(timeout=timeout)
    except queue.Empty:
        raise TimeoutError(f"RPC call timeout after {timeout}s: {getattr(method, '__name__', method)}")
    if ok:
        return val
    raise val  # re-raise exception from thread


def _secret_bytes(data) -> bytes:
    if isinstance(data, (list, bytes)) and len(data) == 64:
        return bytes(data)
    raise ConfigError("Unsupported keypair format; expected a 64-byte secret key")


def load_keypair(private_key: str) -> Keypair:
    """Load the wallet keypair.

    Accepts a base58 secret key, a JSON array of ints, or a path to a
    Solana CLI keypair file.
    """
    try:
        if os.path.isfile(private_key):
            with open(private_key, "r") as f:
                return Keypair.from_bytes(_secret_bytes(json.load(f)))
        if private_key.lstrip().startswith("["):
            return Keypair.from_bytes(_secret_bytes(json.loads(private_key)))
        return Keypair.from_bytes(_secret_bytes(b58decode(private_key.strip())))
    except ConfigError:
        raise
    except Exception as e:
        raise ConfigError(f"PRIVATE_KEY could not be decoded: {type(e).__name__}") from e


def get_sol_balance(client: Client, owner: PublicKey, timeout: Optional[float] = None) -> int:
    """Return the owner's SOL balance in lamports."""
    resp = _rpc_call(client.get_balance, owner, timeout=timeout)
    return int(resp.value)


def sign_swap_transaction(swap_tx_b64: str, kp: Keypair) -> VersionedTransaction:
    """Decode an unsigned base64 VersionedTransaction and sign it with `kp`."""
    unsigned = VersionedTransaction.from_bytes(base64.b64decode(swap_tx_b64))
    return VersionedTransaction(unsigned.message, [kp])


def get_latest_blockhash(client: Client, timeout: Optional[float] = None):
    """Return the latest blockhash value (blockhash, last_valid_block_height)."""
    resp = _rpc_call(client.get_latest_blockhash, Confirmed, timeout=timeout)
    return resp.value


def send_signed_transaction(client: Client, tx: VersionedTransaction, timeout: Optional[float] = None) -> Signature:
    """Submit raw signed bytes without preflight; the node retries up to SEND_MAX_RETRIES times."""
    opts = TxOpts(skip_preflight=True, max_retries=config.SEND_MAX_RETRIES)
    resp = _rpc_call(client.send_raw_transaction, bytes(tx), opts, timeout=timeout)
    sig = getattr(resp, "value", None)
    if sig is None:
        raise TransactionError(f"Failed to send tx, unexpected response: {resp}")
    return sig


def confirm_signature(client: Client, sig: Signature, last_valid_block_height: int | None,
                      timeout: Optional[float] = None) -> None:
    """Wait for `sig` at confirmed commitment.

    Raises TransactionError when the status is missing or carries an error,
    even though the signature itself was accepted by the node.
    """
    resp = _rpc_call(
        client.confirm_transaction,
        sig,
        Confirmed,
        last_valid_block_height=last_valid_block_height,
        timeout=timeout,
    )
    statuses = getattr(resp, "value", None) or []
    status = statuses[0] if statuses else None
    if status is None:
        raise UnconfirmedTransactionError(f"Transaction {sig} not found after confirmation")
    if status.err is not None:
        raise TransactionError(f"Transaction failed: {status.err}")
