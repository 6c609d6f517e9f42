import base64
import logging
from decimal import Decimal
from types import SimpleNamespace

import pytest
import requests
from solders.hash import Hash
from solders.keypair import Keypair
from solders.message import MessageV0
from solders.signature import Signature
from solders.transaction import VersionedTransaction

from autovolume import config

JITOSOL_MINT = "J1toso1uCk3RLmjorhTtrVwY9HJ7X8V9yYac6Y7kGCPn"


class FakeResponse:
    def __init__(self, body=None, status_code: int = 200):
        self._body = body
        self.status_code = status_code

    def json(self):
        if self._body is None:
            raise ValueError("no JSON body")
        return self._body

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error", response=self)


class FakeSession:
    """Stands in for requests.Session; replays queued quote and swap responses."""

    def __init__(self, quotes=None, swaps=None):
        self.quotes = list(quotes or [])
        self.swaps = list(swaps or [])
        self.gets = []
        self.posts = []

    def get(self, url, params=None, timeout=None):
        self.gets.append({"url": url, "params": params, "timeout": timeout})
        item = self.quotes.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    def post(self, url, json=None, timeout=None):
        self.posts.append({"url": url, "json": json, "timeout": timeout})
        item = self.swaps.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


class FakeClient:
    """Stands in for solana.rpc.api.Client with typed-response shaped results."""

    def __init__(self, balance_lamports: int = 10 ** 9, confirm_errs=None):
        self.balance_lamports = balance_lamports
        self.confirm_errs = list(confirm_errs or [])
        self.sent = []
        self.confirmed = []
        self.balance_calls = 0

    def get_balance(self, pubkey, commitment=None):
        self.balance_calls += 1
        return SimpleNamespace(value=self.balance_lamports)

    def get_latest_blockhash(self, commitment=None):
        return SimpleNamespace(value=SimpleNamespace(blockhash=Hash.default(), last_valid_block_height=1234))

    def send_raw_transaction(self, txn, opts=None):
        self.sent.append({"raw": txn, "opts": opts})
        return SimpleNamespace(value=Signature.new_unique())

    def confirm_transaction(self, tx_sig, commitment=None, sleep_seconds=0.5, last_valid_block_height=None):
        self.confirmed.append({"sig": tx_sig, "commitment": commitment, "last_valid_block_height": last_valid_block_height})
        err = self.confirm_errs.pop(0) if self.confirm_errs else None
        return SimpleNamespace(value=[SimpleNamespace(err=err)])


def unsigned_swap_tx_b64(kp: Keypair) -> str:
    msg = MessageV0.try_compile(kp.pubkey(), [], [], Hash.default())
    tx = VersionedTransaction.populate(msg, [Signature.default()])
    return base64.b64encode(bytes(tx)).decode()


def quote_response(in_amount: int, out_amount: int) -> FakeResponse:
    return FakeResponse({"inAmount": str(in_amount), "outAmount": str(out_amount), "routePlan": []})


def swap_response(kp: Keypair) -> FakeResponse:
    return FakeResponse({"swapTransaction": unsigned_swap_tx_b64(kp), "lastValidBlockHeight": 1234})


@pytest.fixture
def keypair():
    return Keypair()


@pytest.fixture
def env(keypair):
    return {
        "PRIVATE_KEY": str(keypair),
        "RPC_URL": "http://rpc.invalid",
        "LST_MINT": JITOSOL_MINT,
        "LEG_DELAY_SEC": "0",
    }


@pytest.fixture
def cfg():
    return config.Config(
        private_key="unused",
        rpc_url="http://rpc.invalid",
        lst_mint=JITOSOL_MINT,
        swap_amount_sol=Decimal("0.01"),
        leg_delay_sec=0,
    )


@pytest.fixture(autouse=True)
def _reset_package_logger():
    yield
    logger = logging.getLogger("autovolume")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
