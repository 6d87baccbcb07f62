#!/usr/bin/env python3
"""Scalar secret sharing with nilql keys.

Splits an integer and a string into one share per node, with both a
cluster key and a secret key, and recombines them.

Prerequisites:
    - pip install -e .

Usage:
    python examples/nilql_encryption.py
"""

from __future__ import annotations

import logging

from secretvault.codec import Cluster, KeyMode, ShareCodec


def main() -> int:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    cluster = Cluster.of_size(3)

    for mode in (KeyMode.CLUSTER, KeyMode.SECRET):
        codec = ShareCodec()
        codec.initialize(cluster, mode=mode)
        print(f"\n[{mode} key, {cluster.size} nodes]")

        for value in (10, "Steph"):
            shares = codec.encrypt_scalar(value)
            print(f"  {value!r} -> {len(shares)} shares")
            for i, share in enumerate(shares):
                print(f"    node {i}: {share}")
            print(f"  recombined: {codec.decrypt_scalar(shares)!r}")

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
