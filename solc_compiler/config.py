# Copyright (c) 2023-2026 Cryft Labs. All rights reserved.
# Licensed under the Apache License, Version 2.0.
# This software is part of a patented system. See LICENSE and PATENT NOTICE.

"""
Defaults and environment overrides shared by the resolver, the binary
cache and the CLI.

Environment:
    SOLC_BINARIES_URL   base URL of the solc binary distribution
    SOLC_CACHE_DIR      directory holding downloaded solc executables
"""

import os
from pathlib import Path

import certifi
import requests
import solcx

DEFAULT_BINARIES_URL = "https://binaries.soliditylang.org"

HTTP_TIMEOUT = 30            # seconds, per request
SELF_CHECK_TIMEOUT = 15      # seconds, for `solc --version`
DOWNLOAD_CHUNK_SIZE = 1 << 16

DEFAULT_OPTIMIZER_RUNS = 200

VALID_EVM_VERSIONS = [
    "homestead", "tangerineWhistle", "spuriousDragon",
    "byzantium", "constantinople", "petersburg",
    "istanbul", "berlin", "london", "paris", "shanghai", "cancun",
    "prague", "osaka",
]

# EIP-170 runtime code size limit
CONTRACT_SIZE_LIMIT = 24576


def binaries_url() -> str:
    return os.environ.get("SOLC_BINARIES_URL", DEFAULT_BINARIES_URL).rstrip("/")


def default_cache_root() -> Path:
    """
    Directory for cached solc executables.

    Falls back to py-solc-x's install folder, whose ``solc-v<version>``
    layout matches ours, so binaries installed by either tool are shared.
    """
    override = os.environ.get("SOLC_CACHE_DIR")
    if override:
        return Path(override).expanduser()
    return Path(solcx.get_solcx_install_folder())


def make_session() -> requests.Session:
    """HTTP session that verifies TLS against the certifi CA bundle."""
    session = requests.Session()
    session.verify = certifi.where()
    return session
