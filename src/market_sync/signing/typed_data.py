"""EIP-712 typed data for the Agent record that authenticates an action.

The action hash is never signed directly. It is wrapped as the
`connectionId` of an Agent record, together with a one-letter `source`
telling mainnet ("a") from testnet ("b"), and signed under a fixed domain:

    domain:  {name: "Exchange", version: "1", chainId: 1337,
              verifyingContract: 0x0000000000000000000000000000000000000000}
    message: {source: "a", connectionId: <32-byte action hash>}

The same digest therefore yields different signatures per network.
"""

from typing import Any

from pydantic import BaseModel, Field

AGENT_DOMAIN: dict[str, Any] = {
    "name": "Exchange",
    "version": "1",
    "chainId": 1337,
    "verifyingContract": "0x0000000000000000000000000000000000000000",
}

EIP712_DOMAIN_FIELDS = [
    {"name": "name", "type": "string"},
    {"name": "version", "type": "string"},
    {"name": "chainId", "type": "uint256"},
    {"name": "verifyingContract", "type": "address"},
]

AGENT_FIELDS = [
    {"name": "source", "type": "string"},
    {"name": "connectionId", "type": "bytes32"},
]

MAINNET_SOURCE = "a"
TESTNET_SOURCE = "b"


class Signature(BaseModel):
    """Ethereum-style signature components."""

    r: str = Field(description="0x-prefixed, 64 hex chars")
    s: str = Field(description="0x-prefixed, 64 hex chars")
    v: int = Field(description="Recovery id + 27 (27 or 28)")


class SignedAction(BaseModel):
    """An action's 32-byte commitment and the signature over it."""

    action_hash: bytes = Field(description="Keccak-256 of the framed action")
    signature: Signature

    @property
    def action_hash_hex(self) -> str:
        return "0x" + self.action_hash.hex()


def agent_source(is_testnet: bool) -> str:
    return TESTNET_SOURCE if is_testnet else MAINNET_SOURCE


def build_agent_typed_data(connection_id: bytes, is_testnet: bool = False) -> dict[str, Any]:
    """Full EIP-712 message for signing an action hash.

    Args:
        connection_id: 32-byte action hash
        is_testnet: Selects the Agent source tag

    Returns:
        Dict accepted by eth_account.messages.encode_typed_data(full_message=...)
    """
    if len(connection_id) != 32:
        raise ValueError(f"connectionId must be 32 bytes, got {len(connection_id)}")

    return {
        "domain": dict(AGENT_DOMAIN),
        "types": {
            "EIP712Domain": EIP712_DOMAIN_FIELDS,
            "Agent": AGENT_FIELDS,
        },
        "primaryType": "Agent",
        "message": {
            "source": agent_source(is_testnet),
            "connectionId": connection_id,
        },
    }
