from decimal import Decimal

import pytest

from autovolume import config
from autovolume.errors import ConfigError


@pytest.mark.parametrize("missing", ["PRIVATE_KEY", "RPC_URL", "LST_MINT"])
def test_load_config_names_missing_required_variable(env, missing):
    env.pop(missing)
    with pytest.raises(ConfigError, match=f"Missing required environment variable: {missing}"):
        config.load_config(env)


def test_load_config_treats_blank_value_as_missing(env):
    env["RPC_URL"] = "   "
    with pytest.raises(ConfigError, match="RPC_URL"):
        config.load_config(env)


def test_load_config_defaults(env):
    cfg = config.load_config(env)
    assert cfg.swap_amount_sol == Decimal("0.01")
    assert cfg.swap_amount_lamports == 10_000_000
    assert cfg.minimum_balance_sol == Decimal("0.015")
    assert cfg.jupiter_quote_url == config.JUPITER_QUOTE_URL
    assert cfg.leg_delay_sec == 0


def test_load_config_swap_amount_override(env):
    env["SWAP_AMOUNT_SOL"] = "0.25"
    cfg = config.load_config(env)
    assert cfg.swap_amount_lamports == 250_000_000
    assert cfg.minimum_balance_sol == Decimal("0.255")


@pytest.mark.parametrize("raw", ["abc", "-1", "0", "nan"])
def test_load_config_rejects_bad_swap_amount(env, raw):
    env["SWAP_AMOUNT_SOL"] = raw
    with pytest.raises(ConfigError, match="SWAP_AMOUNT_SOL"):
        config.load_config(env)


def test_load_config_rejects_invalid_mint(env):
    env["LST_MINT"] = "not-a-mint"
    with pytest.raises(ConfigError, match="LST_MINT"):
        config.load_config(env)


def test_sol_to_lamports_floors_sub_lamport_remainder():
    assert config.sol_to_lamports(Decimal("0.0000000019")) == 1
    assert config.sol_to_lamports(Decimal("1")) == config.LAMPORTS_PER_SOL


@pytest.mark.parametrize("name", ["HTTP_TIMEOUT_SEC", "SOLANA_RPC_TIMEOUT_SEC", "CONFIRM_TIMEOUT_SEC", "LEG_DELAY_SEC"])
@pytest.mark.parametrize("raw", ["nan", "inf", "-inf", "-1", "soon"])
def test_load_config_rejects_bad_durations(env, name, raw):
    env[name] = raw
    with pytest.raises(ConfigError, match=name):
        config.load_config(env)


@pytest.mark.parametrize("name", ["HTTP_TIMEOUT_SEC", "SOLANA_RPC_TIMEOUT_SEC", "CONFIRM_TIMEOUT_SEC"])
def test_load_config_rejects_zero_timeouts(env, name):
    env[name] = "0"
    with pytest.raises(ConfigError, match=f"{name} must be positive"):
        config.load_config(env)


def test_load_config_allows_zero_leg_delay(env):
    env["LEG_DELAY_SEC"] = "0"
    assert config.load_config(env).leg_delay_sec == 0
