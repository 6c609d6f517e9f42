import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import requests
from solana.rpc.api import Client
from solders.keypair import Keypair

from . import config, jupiter_client, solana_client
from .errors import AutoVolumeError, TransactionError, UnconfirmedTransactionError

logger = logging.getLogger(__name__)


class Direction(str, Enum):
    BUY = "buy"    # SOL -> LST
    SELL = "sell"  # LST -> SOL

    @property
    def label(self) -> str:
        return self.value.upper()


@dataclass(frozen=True)
class SwapResult:
    success: bool
    direction: Direction
    input_amount: Optional[int] = None
    output_amount: Optional[int] = None
    txid: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, direction: Direction, txid: str, input_amount: int, output_amount: int) -> "SwapResult":
        return cls(True, direction, input_amount, output_amount, txid=txid)

    @classmethod
    def failed(cls, direction: Direction, error: str, input_amount: Optional[int] = None) -> "SwapResult":
        return cls(False, direction, input_amount, error=error)


def _mints(cfg: config.Config, direction: Direction) -> tuple[str, str]:
    if direction is Direction.BUY:
        return config.SOL_MINT, cfg.lst_mint
    return cfg.lst_mint, config.SOL_MINT


def _fmt(units: int, ticker: str) -> str:
    decimals = config.SOL_DECIMALS if ticker == "SOL" else config.LST_DECIMALS
    return f"{config.units_to_decimal(units, decimals)} {ticker}"


def _warn_if_unsettled(label: str, txid: Optional[str], exc: Exception) -> None:
    # an on-chain error status is final; anything else after sending is not
    if txid is None:
        return
    if isinstance(exc, TransactionError) and not isinstance(exc, UnconfirmedTransactionError):
        return
    logger.warning(f"{label} - Transaction {txid} was sent but not confirmed; it may still settle on-chain")


def perform_swap(cfg: config.Config, kp: Keypair, client: Client, direction: Direction,
                 amount: Optional[int] = None, session: requests.Session | None = None) -> SwapResult:
    """Run one leg: quote, build, sign, submit and confirm.

    The buy leg spends cfg.swap_amount_sol; the sell leg spends exactly
    `amount` LST base units. Failures are logged and returned as a failed
    SwapResult rather than raised.
    """
    label = direction.label
    logger.info(f"{label} - Starting swap")

    if direction is Direction.BUY:
        swap_amount = cfg.swap_amount_lamports
        in_ticker, out_ticker = "SOL", "LST"
    else:
        if amount is None or int(amount) <= 0:
            logger.error(f"{label} - Failed: no token amount to sell")
            return SwapResult.failed(direction, "no token amount to sell", amount)
        swap_amount = int(amount)
        in_ticker, out_ticker = "LST", "SOL"

    input_mint, output_mint = _mints(cfg, direction)
    logger.info(f"{label} - Amount: {_fmt(swap_amount, in_ticker)}")

    txid = None
    try:
        quote = jupiter_client.get_quote(cfg, input_mint, output_mint, swap_amount, session=session)
        out_amount = int(quote["outAmount"])
        logger.info(f"{label} - Expected output: {_fmt(out_amount, out_ticker)}")

        swap_tx_b64 = jupiter_client.build_swap_transaction(cfg, quote, str(kp.pubkey()), session=session)
        tx = solana_client.sign_swap_transaction(swap_tx_b64, kp)

        blockhash = solana_client.get_latest_blockhash(client, timeout=cfg.rpc_timeout_sec)
        sig = solana_client.send_signed_transaction(client, tx, timeout=cfg.rpc_timeout_sec)
        txid = str(sig)
        logger.info(f"{label} - Transaction sent: {txid}")

        solana_client.confirm_signature(
            client, sig, blockhash.last_valid_block_height, timeout=cfg.confirm_timeout_sec
        )
        logger.info(f"{label} - Transaction confirmed ✓")
    except AutoVolumeError as e:
        logger.error(f"{label} - Failed: {e}")
        _warn_if_unsettled(label, txid, e)
        return SwapResult.failed(direction, str(e), swap_amount)
    except Exception as e:
        logger.error(f"{label} - Failed: {type(e).__name__}: {e}")
        _warn_if_unsettled(label, txid, e)
        return SwapResult.failed(direction, f"{type(e).__name__}: {e}", swap_amount)

    return SwapResult.ok(direction, txid, swap_amount, out_amount)
