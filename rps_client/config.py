"""
Configuration for the Rock/Paper/Scissors FHE client
"""
from typing import Dict, Any
import os
from pathlib import Path


def _load_env_value(*keys: str, default: str = "") -> str:
    """
    Load a setting from environment variables or the root .env file.
    The first key found wins; supports both `KEY=value` and `KEY: value` lines.
    """
    for key in keys:
        value = os.getenv(key)
        if value:
            return value.strip()

    env_path = Path(__file__).resolve().parent.parent / ".env"
    if env_path.exists():
        with env_path.open("r", encoding="utf-8") as env_file:
            for raw_line in env_file:
                line = raw_line.strip()
                if not line or line.startswith("#"):
                    continue

                if "=" in line and (":" not in line or line.index("=") < line.index(":")):
                    key, val = line.split("=", 1)
                elif ":" in line:
                    key, val = line.split(":", 1)
                else:
                    continue

                key = key.strip()
                val = val.strip().strip('"').strip("'")
                if key in keys:
                    return val

    return default


# Ledger Configuration
LEDGER_CONFIG: Dict[str, Any] = {
    # JSON relay in front of the chain node and the game contract
    "rpc_url": _load_env_value("RPS_RPC_URL", default="http://localhost:8545"),
    "contract_name": "FHERockPaperScissors",

    # Chains the client is allowed to connect to
    # 1 mainnet, 42161 arbitrum, 11155111 sepolia, 421614 arbitrum sepolia, 31337 hardhat
    "target_chain_ids": [31337, 11155111, 421614],

    "connection_timeout": 10,
    "events_long_poll_timeout": 30,
    "events_retry_delay": 2.0,
}


# FHE Session Configuration
FHE_CONFIG: Dict[str, Any] = {
    "chain_environments": {
        1: "MAINNET",
        42161: "MAINNET",
        11155111: "TESTNET",
        421614: "TESTNET",
        31337: "MOCK",
    },
    "default_environment": "TESTNET",

    # Only used by the MOCK environment to submit mock encrypted inputs
    "mock_decrypt_delay": 1.0,
    "mock_signer_key": _load_env_value(
        "RPS_MOCK_SIGNER_KEY",
        default="0x6C8D7F768A6BB4AAFE85E8A2F5A9680355239C7E14646ED62B044E39DE154512",
    ),

    "choice_type": "uint8",
}


# Game Configuration
GAME_CONFIG: Dict[str, Any] = {
    # Ledger state codes used by getGamesByState / getGame
    "state_codes": {
        "WaitingForPlayers": 0,
        "WaitingForMoves": 1,
        "Finished": 2,
        "WaitingForReveal": 3,
    },

    # Finality wait poll interval (seconds)
    "block_poll_interval": 0.5,

    # Directory poll interval (seconds) when no events arrive
    "directory_poll_interval": 4.0,

    "ether_decimals": 18,
    "display_places": 4,

    "log_dir": "logs",
}


# Cryptography Configuration (local MOCK backend)
CRYPTO_CONFIG: Dict[str, Any] = {
    "scheme": "BFV",
    "plain_modulus": 65537,
    "batch_size": 8,
    "multiplicative_depth": 1,
}
