"""Order-book slabs, fee tiers, token instructions, errors and client configuration."""

__version__ = "0.1.0"

__all__ = [
    "cluster",
    "context",
    "critbit",
    "errors",
    "fees",
    "paths",
    "pubkey",
    "slab",
    "token_instruction",
]