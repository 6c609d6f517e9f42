import argparse
import logging
import os
import sys
import time
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Callable, Mapping, Optional

import requests
from dotenv import find_dotenv, load_dotenv
from solana.rpc.api import Client
from solders.keypair import Keypair

from . import config, solana_client
from .errors import ConfigError
from .log import setup_logging
from .swap import Direction, perform_swap

logger = logging.getLogger(__name__)


class CycleStatus(str, Enum):
    SKIPPED = "skipped"          # balance below minimum or unreadable
    CHECKED = "checked"          # --check-only, balance sufficient
    BUY_FAILED = "buy_failed"
    SELL_FAILED = "sell_failed"
    COMPLETED = "completed"


@dataclass(frozen=True)
class BalanceCheck:
    balance_sol: Decimal
    minimum_required_sol: Decimal

    @property
    def sufficient(self) -> bool:
        return self.balance_sol >= self.minimum_required_sol

    @property
    def shortfall_sol(self) -> Decimal:
        return max(Decimal(0), self.minimum_required_sol - self.balance_sol)


def evaluate_balance(cfg: config.Config, balance_lamports: int) -> BalanceCheck:
    return BalanceCheck(
        balance_sol=config.units_to_decimal(balance_lamports, config.SOL_DECIMALS),
        minimum_required_sol=cfg.minimum_balance_sol,
    )


def check_wallet_balance(cfg: config.Config, kp: Keypair, client: Client) -> bool:
    """Return True when the wallet holds the swap amount plus the fee buffer."""
    try:
        lamports = solana_client.get_sol_balance(client, kp.pubkey(), timeout=cfg.rpc_timeout_sec)
    except Exception as e:
        logger.error(f"Failed to check balance: {e}")
        return False

    check = evaluate_balance(cfg, lamports)
    logger.info(f"Wallet balance: {check.balance_sol:.4f} SOL")
    if not check.sufficient:
        logger.error(f"Insufficient balance. Need at least {check.minimum_required_sol:.4f} SOL to safely perform swaps.")
        logger.error(f"Please fund your wallet with {check.shortfall_sol:.4f} more SOL.")
        return False
    return True


def run_cycle(cfg: config.Config, kp: Keypair, client: Client,
              session: requests.Session | None = None,
              sleep: Callable[[float], None] = time.sleep,
              check_only: bool = False) -> CycleStatus:
    """One buy-then-sell round trip, stopping at the first failing step."""
    logger.info("=== Starting LST Auto-Volume ===")

    if not check_wallet_balance(cfg, kp, client):
        return CycleStatus.SKIPPED
    if check_only:
        logger.info("Balance check passed; skipping swaps (--check-only)")
        return CycleStatus.CHECKED

    buy = perform_swap(cfg, kp, client, Direction.BUY, session=session)
    if not buy.success:
        logger.error("Buy failed, skipping sell")
        return CycleStatus.BUY_FAILED

    # let balances settle before quoting the reverse leg
    sleep(cfg.leg_delay_sec)

    sell = perform_swap(cfg, kp, client, Direction.SELL, amount=buy.output_amount, session=session)
    if not sell.success:
        logger.error("Sell failed")
        held = config.units_to_decimal(buy.output_amount, config.LST_DECIMALS)
        logger.warning(
            f"Wallet still holds {held} LST ({buy.output_amount} base units) from buy {buy.txid}; "
            f"it is not sold back automatically"
        )
        return CycleStatus.SELL_FAILED

    logger.info("=== Swap cycle completed successfully ===")
    return CycleStatus.COMPLETED


def _parse_args(argv: Optional[list[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Buy then sell the configured LST through Jupiter to keep its trading volume alive.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python autoVolume.py                     # one buy/sell cycle
  python autoVolume.py --check-only        # only report whether the wallet is funded
  python autoVolume.py --env-file prod.env --log-file /var/log/lst-volume.log

Required in .env (or environment):
  PRIVATE_KEY, RPC_URL, LST_MINT
Optional:
  SWAP_AMOUNT_SOL (default 0.01), LOG_FILE, LOG_LEVEL
        """
    )
    parser.add_argument("--env-file", type=str, help="Path to a .env file (default: search from the working directory)")
    parser.add_argument("--log-file", type=str, help=f"Append log lines to this file (default: LOG_FILE or {config.DEFAULT_LOG_FILE})")
    parser.add_argument("--check-only", action="store_true", help="Check the wallet balance and exit without swapping")
    return parser.parse_args(argv)


def main(argv: Optional[list[str]] = None, environ: Optional[Mapping[str, str]] = None) -> int:
    """Run one cycle and return the process exit code."""
    args = _parse_args(argv)
    if environ is None:
        load_dotenv(args.env_file or find_dotenv(usecwd=True))
        environ = os.environ

    log_file = args.log_file or environ.get("LOG_FILE") or config.DEFAULT_LOG_FILE
    setup_logging(log_file, environ.get("LOG_LEVEL") or "INFO")

    try:
        cfg = config.load_config(environ)
        kp = solana_client.load_keypair(cfg.private_key)
    except ConfigError as e:
        logger.error(str(e))
        return 1
    logger.info(f"Using swap amount: {cfg.swap_amount_sol} SOL")

    try:
        with requests.Session() as session:
            run_cycle(cfg, kp, solana_client.make_client(cfg), session=session, check_only=args.check_only)
    except Exception as e:
        logger.error(f"Fatal error: {e}")
        return 1
    return 0


def run():
    sys.exit(main())
