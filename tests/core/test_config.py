"""Tests for organization and node configuration."""

from __future__ import annotations

import json

import pytest

from secretvault.core import ConfigurationError, NodeConfig, OrgConfig, OrgCredentials


class TestNodeConfig:
    """Tests for NodeConfig."""

    def test_from_dict_strips_trailing_slash(self):
        node = NodeConfig.from_dict({"url": "https://node-a/", "did": "did:nil:a"})
        assert node == NodeConfig(url="https://node-a", did="did:nil:a")
        assert node.to_dict() == {"url": "https://node-a", "did": "did:nil:a"}

    def test_from_dict_requires_url(self):
        with pytest.raises(ConfigurationError):
            NodeConfig.from_dict({"did": "did:nil:a"})


class TestOrgCredentials:
    """Tests for OrgCredentials."""

    def test_camel_case_keys(self):
        creds = OrgCredentials.from_dict({"secretKey": "ab", "orgDid": "did:nil:org"})
        assert creds == OrgCredentials(secret_key="ab", org_did="did:nil:org")

    def test_repr_redacts_key(self):
        assert "deadbeef" not in repr(OrgCredentials(secret_key="deadbeef", org_did="did:nil:org"))

    def test_incomplete(self):
        with pytest.raises(ConfigurationError):
            OrgCredentials.from_dict({"secret_key": "ab"})


class TestOrgConfig:
    """Tests for OrgConfig."""

    def test_from_dict(self):
        config = OrgConfig.from_dict({
            "org_credentials": {"secret_key": "ab", "org_did": "did:nil:org"},
            "nodes": [{"url": "https://a", "did": "did:a"}, {"url": "https://b", "did": "did:b"}],
        })
        assert config.credentials.org_did == "did:nil:org"
        assert [n.url for n in config.nodes] == ["https://a", "https://b"]

    def test_duplicate_urls(self):
        with pytest.raises(ConfigurationError):
            OrgConfig(nodes=[NodeConfig("https://a"), NodeConfig("https://a")])

    def test_from_env(self):
        env = {
            "NILLION_ORG_SECRET_KEY": "ab",
            "NILLION_ORG_DID": "did:nil:org",
            "SECRETVAULT_NODES": json.dumps([{"url": "https://a", "did": "did:a"}]),
        }
        config = OrgConfig.from_env(env)
        assert config.credentials == OrgCredentials(secret_key="ab", org_did="did:nil:org")
        assert config.nodes == [NodeConfig(url="https://a", did="did:a")]

    def test_from_env_empty(self):
        config = OrgConfig.from_env({})
        assert config.credentials is None
        assert config.nodes == []

    def test_from_env_partial_credentials(self):
        with pytest.raises(ConfigurationError):
            OrgConfig.from_env({"NILLION_ORG_DID": "did:nil:org"})

    @pytest.mark.parametrize("raw", ["not json", '{"url": "https://a"}'])
    def test_from_env_bad_nodes(self, raw):
        with pytest.raises(ConfigurationError):
            OrgConfig.from_env({"SECRETVAULT_NODES": raw})

    def test_from_env_reads_os_environ(self, monkeypatch):
        monkeypatch.setenv("SECRETVAULT_NODES", '[{"url": "https://z"}]')
        monkeypatch.delenv("NILLION_ORG_SECRET_KEY", raising=False)
        monkeypatch.delenv("NILLION_ORG_DID", raising=False)
        assert [n.url for n in OrgConfig.from_env().nodes] == ["https://z"]
