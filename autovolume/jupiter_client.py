"""Jupiter aggregator HTTP calls: quote discovery and swap transaction building."""

import requests

from . import config
from .errors import QuoteError, SwapBuildError


def _json_body(resp: requests.Response) -> dict:
    try:
        body = resp.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


def get_quote(cfg: config.Config, input_mint: str, output_mint: str, amount: int,
              session: requests.Session | None = None) -> dict:
    """Request a direct-route quote for `amount` base units of `input_mint`.

    Returns the raw quote object, which is passed back unchanged to
    build_swap_transaction.
    """
    http = session or requests
    params = {
        "inputMint": input_mint,
        "outputMint": output_mint,
        "amount": str(int(amount)),
        "slippageBps": str(config.SLIPPAGE_BPS),
        "onlyDirectRoutes": "true" if config.ONLY_DIRECT_ROUTES else "false",
    }
    try:
        resp = http.get(cfg.jupiter_quote_url, params=params, timeout=cfg.http_timeout_sec)
    except requests.RequestException as e:
        raise QuoteError(f"Quote request failed: {e}") from e

    quote = _json_body(resp)
    if quote.get("error"):
        raise QuoteError(f"Quote error: {quote['error']}")
    try:
        resp.raise_for_status()
    except requests.HTTPError as e:
        raise QuoteError(f"Quote error: HTTP {resp.status_code}") from e
    if not quote.get("outAmount"):
        raise QuoteError("Quote error: response has no outAmount")
    return quote


def build_swap_transaction(cfg: config.Config, quote: dict, user_public_key: str,
                           session: requests.Session | None = None) -> str:
    """Ask Jupiter for an unsigned swap transaction; returns it base64-encoded."""
    http = session or requests
    payload = {
        "quoteResponse": quote,
        "userPublicKey": user_public_key,
        "dynamicComputeUnitLimit": True,
        "dynamicSlippage": {"maxBps": config.DYNAMIC_SLIPPAGE_MAX_BPS},
        "prioritizationFeeLamports": {
            "priorityLevelWithMaxLamports": {
                "maxLamports": config.PRIORITY_FEE_MAX_LAMPORTS,
                "priorityLevel": config.PRIORITY_LEVEL,
            },
        },
    }
    try:
        resp = http.post(cfg.jupiter_swap_url, json=payload, timeout=cfg.http_timeout_sec)
    except requests.RequestException as e:
        raise SwapBuildError(f"Swap request failed: {e}") from e

    body = _json_body(resp)
    if body.get("error"):
        raise SwapBuildError(f"Swap error: {body['error']}")
    swap_tx_b64 = body.get("swapTransaction")
    if not swap_tx_b64:
        raise SwapBuildError("No swap transaction in response")
    return swap_tx_b64
