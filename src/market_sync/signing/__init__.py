"""Signing module - action hashing and EIP-712 Agent signatures."""

from market_sync.signing.action_signer import (
    ActionSigner,
    frame_action,
    generate_action_hash,
    load_private_key,
    recover_action_signer,
    sign_action,
    split_signature,
)
from market_sync.signing.typed_data import (
    AGENT_DOMAIN,
    Signature,
    SignedAction,
    agent_source,
    build_agent_typed_data,
)

__all__ = [
    "ActionSigner",
    "frame_action",
    "generate_action_hash",
    "sign_action",
    "recover_action_signer",
    "load_private_key",
    "split_signature",
    "AGENT_DOMAIN",
    "Signature",
    "SignedAction",
    "agent_source",
    "build_agent_typed_data",
]
