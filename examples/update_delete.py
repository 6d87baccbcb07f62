#!/usr/bin/env python3
"""Update a secret field, then delete and flush records.

Uses the in-process node set and shows a node failure being isolated.

Usage:
    python examples/update_delete.py
"""

from __future__ import annotations

import asyncio
import logging

from cryptography.hazmat.primitives.asymmetric import ec

from secretvault import MemoryTransport, NodeConfig, NodeSetSession, OrgCredentials


async def main() -> int:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    key = ec.generate_private_key(ec.SECP256K1()).private_numbers().private_value
    credentials = OrgCredentials(secret_key=f"{key:064x}", org_did="did:nil:testnet:example-org")
    nodes = [NodeConfig(url=f"memory://node-{i}", did=f"did:nil:testnet:node-{i}") for i in range(3)]
    transport = MemoryTransport(nodes)

    session = NodeSetSession(nodes, credentials, transport=transport)
    await session.create_schema({"type": "array"}, "contributors", schema_id="contributors")
    session.set_schema_id("contributors")
    await session.init()

    await session.write([
        {"_id": "a", "years_in_web3": {"$allot": 3}},
        {"_id": "b", "years_in_web3": {"$allot": 7}},
    ])

    await session.update({"years_in_web3": {"$allot": 4}}, {"_id": "a"})
    print("after update:", await session.read())

    transport.fail_node(nodes[1].url)
    outcomes = await session.delete({"_id": "b"})
    print("delete outcomes:", [o.to_dict() for o in outcomes])
    transport.restore_node(nodes[1].url)

    # Node 1 still holds its shard of "b"; flush clears every node
    await session.flush()
    print("after flush:", await session.read())

    print("schemas:", await session.list_schemas())
    await session.delete_schema("contributors")
    return 0


if __name__ == "__main__":
    raise SystemExit(asyncio.run(main()))
