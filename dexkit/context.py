"""Global settings for the tools, read from a YAML configuration file."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

import yaml

from dexkit.cluster import Cluster, ClusterKind, parse_cluster
from dexkit.paths import default_config_path, default_wallet_path
from dexkit.pubkey import Pubkey, parse_pubkey

DEVNET_FAUCET_PID = "4bXpkKSV8swHSnwqtzuboGPaPDeEgAn4Vt8GfarV5rZt"
KEYPAIR_LEN = 64


@dataclass(frozen=True)
class Config:
    """The raw contents of a configuration file."""

    srm_mint: str
    msrm_mint: str
    dex_pid: str
    cluster: str | None = None
    wallet_path: str | None = None
    faucet_pid: str | None = None


@dataclass(frozen=True)
class Context:
    """Settings shared by the tools: cluster, wallet and well-known keys."""

    srm_mint: Pubkey
    msrm_mint: Pubkey
    dex_pid: Pubkey
    cluster: Cluster = field(default_factory=Cluster)
    wallet_path: str = field(default_factory=default_wallet_path)
    faucet_pid: Pubkey | None = None

    def wallet(self) -> bytes:
        """The 64 keypair bytes from the wallet file: secret key, then public key."""
        try:
            with open(self.wallet_path, encoding="utf-8") as handle:
                values = json.load(handle)
            if not isinstance(values, list) or len(values) != KEYPAIR_LEN:
                raise ValueError("wrong keypair length")
            return bytes(values)
        except (OSError, ValueError, TypeError):
            raise ValueError("Unable to read provided wallet file") from None


class _ConfigFormatError(ValueError):
    pass


def _section(document: dict[str, Any], name: str) -> dict[str, Any]:
    if name not in document:
        raise _ConfigFormatError(f"missing field `{name}`")
    section = document[name]
    if not isinstance(section, dict):
        raise _ConfigFormatError(f"`{name}` must be a mapping")
    return section


def _string(section: dict[str, Any], name: str, required: bool) -> str | None:
    if name not in section or section[name] is None:
        if required:
            raise _ConfigFormatError(f"missing field `{name}`")
        return None
    value = section[name]
    if not isinstance(value, str):
        raise _ConfigFormatError(f"`{name}` must be a string")
    return value


def load_config(path: str) -> Config:
    """Read a configuration file; raise ValueError if it is not a valid config."""
    with open(path, encoding="utf-8") as handle:
        try:
            document = yaml.safe_load(handle)
            if not isinstance(document, dict):
                raise _ConfigFormatError("config must be a mapping")
            network = _section(document, "network")
            mints = _section(document, "mints")
            programs = _section(document, "programs")
            return Config(
                srm_mint=_string(mints, "srm", True),
                msrm_mint=_string(mints, "msrm", True),
                dex_pid=_string(programs, "dex_pid", True),
                cluster=_string(network, "cluster", False),
                wallet_path=_string(document, "wallet_path", False),
                faucet_pid=_string(programs, "faucet_pid", False),
            )
        except (yaml.YAMLError, _ConfigFormatError) as exc:
            raise ValueError(f"Unable to read yaml config: {exc}") from None


def config_to_context(config: Config) -> Context:
    """Resolve defaults and parse the keys of a config."""
    cluster = Cluster() if config.cluster is None else parse_cluster(config.cluster)
    faucet = config.faucet_pid
    if faucet is None and cluster.kind is ClusterKind.DEVNET:
        faucet = DEVNET_FAUCET_PID
    return Context(
        srm_mint=parse_pubkey(config.srm_mint),
        msrm_mint=parse_pubkey(config.msrm_mint),
        dex_pid=parse_pubkey(config.dex_pid),
        cluster=cluster,
        wallet_path=(
            default_wallet_path() if config.wallet_path is None else config.wallet_path
        ),
        faucet_pid=None if faucet is None else parse_pubkey(faucet),
    )


def context_from_config(path: str | None = None) -> Context:
    """Load the context from a config file, the default one if no path is given."""
    return config_to_context(load_config(default_config_path() if path is None else path))