"""Tests for the deployment registry and its environment overrides."""

import json

import pytest

from accountkit.deployments import DEFAULT_ADDRESSES, load_bouncer_artifact, load_deployments
from accountkit.policy import DeploymentRegistryError

DEVNET_MULTICALL = "0x5FbDB2315678afecb367f032d93F642f64180aa3"


class TestLoadDeployments:

    def test_canonical_defaults(self):
        registry = load_deployments(env={})
        assert registry.multicall == DEFAULT_ADDRESSES["multicall"]
        assert registry.bouncer_bytecode is None

    def test_multicall_override(self):
        registry = load_deployments(env={"ACCOUNTKIT_MULTICALL": DEVNET_MULTICALL.lower()})
        assert registry.multicall == DEVNET_MULTICALL
        assert registry.safe_proxy_factory == DEFAULT_ADDRESSES["safe_proxy_factory"]

    def test_bad_override(self):
        with pytest.raises(DeploymentRegistryError):
            load_deployments(env={"ACCOUNTKIT_MULTICALL": "0x1234"})

    def test_inline_bouncer_bytecode(self):
        registry = load_deployments(env={"ACCOUNTKIT_BOUNCER_BYTECODE": "0x6080"})
        assert registry.require_bouncer_bytecode() == b"\x60\x80"

    def test_missing_bouncer_bytecode(self):
        with pytest.raises(DeploymentRegistryError):
            load_deployments(env={}).require_bouncer_bytecode()


class TestBouncerArtifact:

    @pytest.mark.parametrize("content", [
        {"bytecode": "0x6080"},
        {"Bouncer": {"bytecode": "0x6080"}},
        {"bytecode": {"object": "6080"}},
    ])
    def test_formats(self, tmp_path, content):
        path = tmp_path / "Bouncer.json"
        path.write_text(json.dumps(content))
        assert load_bouncer_artifact(path) == b"\x60\x80"

    def test_unreadable(self, tmp_path):
        with pytest.raises(DeploymentRegistryError):
            load_bouncer_artifact(tmp_path / "missing.json")
