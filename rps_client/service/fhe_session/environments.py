from rps_client.config import FHE_CONFIG, LEDGER_CONFIG

# ============================================================================
# Chain -> FHE environment
# ============================================================================

MAINNET = "MAINNET"
TESTNET = "TESTNET"
MOCK = "MOCK"


def environment_for_chain(chain_id: int) -> str:
    """
    Resolve the FHE initialization environment for a chain.

    Unknown chains fall back to the configured default (TESTNET).
    """
    return FHE_CONFIG["chain_environments"].get(int(chain_id), FHE_CONFIG["default_environment"])


def is_chain_supported(chain_id: int) -> bool:
    """Whether the client is configured to run against this chain."""
    return int(chain_id) in LEDGER_CONFIG["target_chain_ids"]
