import math
import os
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_DOWN
from typing import Mapping

from solders.pubkey import Pubkey as PublicKey

from .errors import ConfigError

REQUIRED_ENV = [
    "PRIVATE_KEY",
    "RPC_URL",
    "LST_MINT",
]

# Solana
SOL_MINT = "So11111111111111111111111111111111111111112"
SOL_DECIMALS = 9
LAMPORTS_PER_SOL = 10 ** SOL_DECIMALS
LST_DECIMALS = 9  # liquid staking tokens mirror SOL precision

# Balance gate: swap amount plus headroom for fees on both legs
FEE_BUFFER_SOL = Decimal("0.005")
DEFAULT_SWAP_AMOUNT_SOL = "0.01"

# Jupiter quote/swap parameters (fixed)
JUPITER_QUOTE_URL = "https://quote-api.jup.ag/v6/quote"
JUPITER_SWAP_URL = "https://quote-api.jup.ag/v6/swap"
SLIPPAGE_BPS = 50
ONLY_DIRECT_ROUTES = True
DYNAMIC_SLIPPAGE_MAX_BPS = 300
PRIORITY_FEE_MAX_LAMPORTS = 10_000_000
PRIORITY_LEVEL = "veryHigh"

# Submission
SEND_MAX_RETRIES = 3

DEFAULT_LOG_FILE = "swap.log"


@dataclass(frozen=True)
class Config:
    private_key: str
    rpc_url: str
    lst_mint: str
    swap_amount_sol: Decimal = Decimal(DEFAULT_SWAP_AMOUNT_SOL)
    jupiter_quote_url: str = JUPITER_QUOTE_URL
    jupiter_swap_url: str = JUPITER_SWAP_URL
    http_timeout_sec: float = 15.0
    rpc_timeout_sec: float = 30.0
    confirm_timeout_sec: float = 90.0
    leg_delay_sec: float = 5.0

    @property
    def swap_amount_lamports(self) -> int:
        return sol_to_lamports(self.swap_amount_sol)

    @property
    def minimum_balance_sol(self) -> Decimal:
        return self.swap_amount_sol + FEE_BUFFER_SOL


def sol_to_lamports(amount_sol: Decimal) -> int:
    """Convert SOL to lamports, flooring any sub-lamport remainder."""
    return int((Decimal(amount_sol) * LAMPORTS_PER_SOL).to_integral_value(rounding=ROUND_DOWN))


def units_to_decimal(units: int, decimals: int) -> Decimal:
    return Decimal(int(units)) / (Decimal(10) ** decimals)


def _decimal(environ: Mapping[str, str], name: str, default: str) -> Decimal:
    raw = environ.get(name) or default
    try:
        value = Decimal(raw)
    except InvalidOperation:
        raise ConfigError(f"{name} must be a number, got {raw!r}")
    if not value.is_finite() or value <= 0:
        raise ConfigError(f"{name} must be a positive number, got {raw!r}")
    return value


def _seconds(environ: Mapping[str, str], name: str, default: str, allow_zero: bool = False) -> float:
    raw = environ.get(name) or default
    try:
        value = float(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number of seconds, got {raw!r}")
    if not math.isfinite(value):
        raise ConfigError(f"{name} must be a finite number of seconds, got {raw!r}")
    if value < 0 or (value == 0 and not allow_zero):
        raise ConfigError(f"{name} must be {'non-negative' if allow_zero else 'positive'}, got {raw!r}")
    return value


def load_config(environ: Mapping[str, str] | None = None) -> Config:
    """Build the process configuration from an environment mapping.

    Raises ConfigError naming the first missing or malformed variable.
    """
    if environ is None:
        environ = os.environ

    for var in REQUIRED_ENV:
        if not (environ.get(var) or "").strip():
            raise ConfigError(f"Missing required environment variable: {var}")

    lst_mint = environ["LST_MINT"].strip()
    try:
        PublicKey.from_string(lst_mint)
    except Exception:
        raise ConfigError(f"LST_MINT is not a valid Solana address: {lst_mint}")

    swap_amount = _decimal(environ, "SWAP_AMOUNT_SOL", DEFAULT_SWAP_AMOUNT_SOL)
    if sol_to_lamports(swap_amount) <= 0:
        raise ConfigError(f"SWAP_AMOUNT_SOL is below one lamport: {swap_amount}")

    return Config(
        private_key=environ["PRIVATE_KEY"].strip(),
        rpc_url=environ["RPC_URL"].strip(),
        lst_mint=lst_mint,
        swap_amount_sol=swap_amount,
        jupiter_quote_url=environ.get("JUPITER_QUOTE_URL") or JUPITER_QUOTE_URL,
        jupiter_swap_url=environ.get("JUPITER_SWAP_URL") or JUPITER_SWAP_URL,
        http_timeout_sec=_seconds(environ, "HTTP_TIMEOUT_SEC", "15"),
        rpc_timeout_sec=_seconds(environ, "SOLANA_RPC_TIMEOUT_SEC", "30"),
        confirm_timeout_sec=_seconds(environ, "CONFIRM_TIMEOUT_SEC", "90"),
        leg_delay_sec=_seconds(environ, "LEG_DELAY_SEC", "5", allow_zero=True),
    )
