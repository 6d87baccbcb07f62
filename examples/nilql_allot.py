#!/usr/bin/env python3
"""Allot and unify a nested record.

Fields marked with ``{"$allot": value}`` are replaced by one share per
node; everything else is copied into every shard unchanged.

Usage:
    python examples/nilql_allot.py
"""

from __future__ import annotations

import json

from secretvault.codec import Cluster, ShareCodec


def main() -> int:
    codec = ShareCodec()
    codec.initialize(Cluster.of_size(3))

    record = {
        "_id": "3f5c1d7e-0b1a-4c52-9a8e-1f0d2c3b4a59",
        "name": {"$allot": "Vitalik"},
        "years_in_web3": {"$allot": 8},
        "responses": [
            {"rating": 5, "question_number": 1},
            {"rating": 3, "question_number": 2},
        ],
    }

    shards = codec.allot(record)
    for i, shard in enumerate(shards):
        print(f"--- shard for node {i} ---")
        print(json.dumps(shard, indent=2, default=str))

    print("--- unified ---")
    print(json.dumps(codec.unify(shards), indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
