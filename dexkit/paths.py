"""Default file locations, relative to the user's home directory."""

from __future__ import annotations

import os
from pathlib import Path

CONFIG_RELATIVE = ".config/serum/cli/config.yaml"
WALLET_RELATIVE = ".config/solana/id.json"
DATA_DIR_RELATIVE = ".config/serum/cli/data/"


def home_path(relative: str) -> str:
    """`relative` joined onto the home directory, or "." when there is no home."""
    try:
        home = Path.home()
    except RuntimeError:
        print("$HOME doesn't exist. This probably won't do what you want.")
        return "."
    return os.path.join(str(home), relative)


def default_config_path() -> str:
    """Where the configuration file is read from unless another is given."""
    return home_path(CONFIG_RELATIVE)


def default_wallet_path() -> str:
    """Where the wallet keypair is read from unless the config names one."""
    return home_path(WALLET_RELATIVE)


def default_data_dir_path() -> str:
    """Directory for data the command line tools keep."""
    return home_path(DATA_DIR_RELATIVE)