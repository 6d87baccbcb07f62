#!/usr/bin/env python3
"""Write secret-shared records to a node set and read them back.

Runs against real SecretVault nodes when configured through the
environment, otherwise against an in-process node set:

    NILLION_ORG_SECRET_KEY=<hex secp256k1 key>
    NILLION_ORG_DID=did:nil:testnet:...
    SECRETVAULT_NODES='[{"url": "https://...", "did": "did:nil:..."}, ...]'
    SECRETVAULT_SCHEMA_ID=<existing schema id>

Usage:
    python examples/read_write.py
"""

from __future__ import annotations

import asyncio
import json
import logging
import os

from cryptography.hazmat.primitives.asymmetric import ec

from secretvault import MemoryTransport, NodeConfig, NodeSetSession, OrgConfig, OrgCredentials


def local_session() -> NodeSetSession:
    """Session over three in-process nodes with a throwaway org key."""
    key = ec.generate_private_key(ec.SECP256K1()).private_numbers().private_value
    credentials = OrgCredentials(secret_key=f"{key:064x}", org_did="did:nil:testnet:example-org")
    nodes = [NodeConfig(url=f"memory://node-{i}", did=f"did:nil:testnet:node-{i}") for i in range(3)]
    return NodeSetSession(
        nodes, credentials, schema_id="example-schema", transport=MemoryTransport(nodes)
    )


async def main() -> int:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    config = OrgConfig.from_env()
    if config.nodes and config.credentials:
        session = NodeSetSession.from_config(config, schema_id=os.environ["SECRETVAULT_SCHEMA_ID"])
    else:
        session = local_session()

    await session.init()

    outcomes = await session.write([
        {"name": {"$allot": "Vitalik"}, "years_in_web3": {"$allot": 8}, "team": "research"},
        {"name": {"$allot": "Satoshi"}, "years_in_web3": {"$allot": 14}, "team": "core"},
    ])
    print(json.dumps([o.to_dict() for o in outcomes], indent=2))
    outcomes.raise_for_failures()

    records = await session.read({"team": "core"})
    print(json.dumps(records, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(asyncio.run(main()))
