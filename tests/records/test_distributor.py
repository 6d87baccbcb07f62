"""Tests for RecordDistributor and the sharded record variants."""

from __future__ import annotations

import itertools

import pytest

from secretvault.core.exceptions import InvalidRecordError, NotInitializedError
from secretvault.records import PlainShards, RecordDistributor, SecretShards


@pytest.fixture
def distributor(codec):
    counter = itertools.count(1)
    return RecordDistributor(codec, id_factory=lambda: f"id-{next(counter)}")


# =============================================================================
# IDENTIFIERS
# =============================================================================


class TestAssignIdentifiers:
    """Tests for RecordDistributor.assign_identifiers()."""

    def test_assigns_missing_ids(self, distributor):
        records = distributor.assign_identifiers([{"a": 1}, {"_id": None}, {"_id": ""}])
        assert [r["_id"] for r in records] == ["id-1", "id-2", "id-3"]

    def test_keeps_existing_id(self, distributor):
        assert distributor.assign_identifiers([{"_id": "mine", "a": 1}]) == [{"_id": "mine", "a": 1}]

    def test_does_not_mutate_input(self, distributor):
        record = {"a": 1}
        distributor.assign_identifiers([record])
        assert record == {"a": 1}

    def test_default_factory_is_uuid(self, codec):
        record_id = RecordDistributor(codec).assign_identifiers([{}])[0]["_id"]
        assert len(record_id) == 36
        assert record_id.count("-") == 4

    def test_rejects_non_mapping(self, distributor):
        with pytest.raises(InvalidRecordError):
            distributor.assign_identifiers([["not", "a", "record"]])

    def test_rejects_marked_id(self, distributor):
        with pytest.raises(InvalidRecordError):
            distributor.assign_identifiers([{"_id": {"$allot": "secret-id"}}])


# =============================================================================
# SHARDING
# =============================================================================


class TestShardRecord:
    """Tests for the SecretShards / PlainShards variants."""

    def test_secret_record(self, distributor):
        sharded = distributor.shard_record({"_id": "r1", "v": {"$allot": 3}})
        assert isinstance(sharded, SecretShards)
        assert sharded.record_id == "r1"
        assert sharded.node_count == 3
        assert len({str(sharded.for_node(i)["v"]) for i in range(3)}) == 3

    def test_plain_record(self, distributor):
        sharded = distributor.shard_record({"_id": "r1", "v": 3})
        assert isinstance(sharded, PlainShards)
        copies = [sharded.for_node(i) for i in range(3)]
        assert copies == [{"_id": "r1", "v": 3}] * 3
        copies[0]["v"] = 99
        assert sharded.for_node(1)["v"] == 3

    @pytest.mark.parametrize("index", [-1, 3])
    def test_for_node_out_of_range(self, distributor, index):
        with pytest.raises(IndexError):
            distributor.shard_record({"v": {"$allot": 1}}).for_node(index)
        with pytest.raises(IndexError):
            distributor.shard_record({"v": 1}).for_node(index)


class TestDistribute:
    """Tests for RecordDistributor.distribute()."""

    def test_fan_out_three_by_two(self, distributor, codec):
        batches = distributor.distribute([
            {"name": {"$allot": "Alice"}, "n": 1},
            {"name": {"$allot": "Bob"}, "n": 2},
        ])

        assert len(batches) == 3
        assert all(len(batch) == 2 for batch in batches)
        for batch in batches:
            assert [shard["_id"] for shard in batch] == ["id-1", "id-2"]
            assert [shard["n"] for shard in batch] == [1, 2]

        names = [codec.unify([batch[j] for batch in batches])["name"] for j in range(2)]
        assert names == ["Alice", "Bob"]

    def test_empty_batch(self, distributor):
        assert distributor.distribute([]) == [[], [], []]

    def test_requires_initialized_codec(self, uninitialized_codec):
        with pytest.raises(NotInitializedError):
            RecordDistributor(uninitialized_codec).distribute([{"a": 1}])

    def test_patch_has_no_identifier(self, distributor):
        patches = distributor.distribute_patch({"v": {"$allot": 4}})
        assert len(patches) == 3
        assert all("_id" not in patch for patch in patches)

    def test_patch_must_be_mapping(self, distributor):
        with pytest.raises(InvalidRecordError):
            distributor.distribute_patch(["v"])
