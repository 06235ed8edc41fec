"""Cluster selection and RPC endpoint lookup."""

from __future__ import annotations

import enum
from dataclasses import dataclass


class ClusterKind(enum.Enum):
    TESTNET = "testnet"
    MAINNET = "mainnet"
    VIP_MAINNET = "vipmainnet"
    DEVNET = "devnet"
    LOCALNET = "localnet"
    DEBUG = "debug"
    CUSTOM = "custom"


_URLS = {
    ClusterKind.DEVNET: "https://devnet.solana.com",
    ClusterKind.TESTNET: "https://testnet.solana.com",
    ClusterKind.MAINNET: "https://api.mainnet-beta.solana.com",
    ClusterKind.VIP_MAINNET: "https://vip-api.mainnet-beta.solana.com",
    ClusterKind.LOCALNET: "http://127.0.0.1:8899",
    ClusterKind.DEBUG: "http://34.90.18.145:8899",
}

_NAMES = {
    "t": ClusterKind.TESTNET,
    "testnet": ClusterKind.TESTNET,
    "m": ClusterKind.MAINNET,
    "mainnet": ClusterKind.MAINNET,
    "v": ClusterKind.VIP_MAINNET,
    "vipmainnet": ClusterKind.VIP_MAINNET,
    "d": ClusterKind.DEVNET,
    "devnet": ClusterKind.DEVNET,
    "l": ClusterKind.LOCALNET,
    "localnet": ClusterKind.LOCALNET,
    "g": ClusterKind.DEBUG,
    "debug": ClusterKind.DEBUG,
}


@dataclass(frozen=True)
class Cluster:
    """A named cluster, or a custom one given by its URL. Defaults to localnet."""

    kind: ClusterKind = ClusterKind.LOCALNET
    custom_url: str | None = None

    def __post_init__(self) -> None:
        if (self.kind is ClusterKind.CUSTOM) != (self.custom_url is not None):
            raise ValueError("a custom URL is given exactly for custom clusters")

    def url(self) -> str:
        if self.kind is ClusterKind.CUSTOM:
            return self.custom_url
        return _URLS[self.kind]

    def __str__(self) -> str:
        if self.kind is ClusterKind.CUSTOM:
            return self.custom_url
        return self.kind.value


def parse_cluster(text: str) -> Cluster:
    """Parse a cluster name, its one-letter alias, or an http(s) URL."""
    lowered = text.lower()
    if "http" in lowered:
        return Cluster(ClusterKind.CUSTOM, text)
    try:
        return Cluster(_NAMES[lowered])
    except KeyError:
        raise ValueError(
            "Cluster must be one of [localnet, testnet, mainnet, devnet] "
            "or be an http or https url\n"
        ) from None