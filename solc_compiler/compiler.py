# Copyright (c) 2023-2026 Cryft Labs. All rights reserved.
# Licensed under the Apache License, Version 2.0.
# This software is part of a patented system. See LICENSE and PATENT NOTICE.

"""
Compiler
========
Ties the pieces together. Construction resolves the version and makes sure
the executable is installed; each ``compile`` call then reads the sources,
fingerprints the request and either returns the cached result or runs solc.

    compiler = Compiler(LATEST, "~/.solc")
    result = compiler.compile(
        "contracts", "SimpleStorage",
        {"*": {"*": ["abi", "evm.bytecode.object", "evm.deployedBytecode.object"]}},
        with_optimizer(Optimizer(enabled=True, runs=999999)),
    )
    storage = result.find("SimpleStorage")

A ``Compiler`` may be shared between threads.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Mapping, Optional, Union

import diskcache
import requests

from . import config
from .binaries import BinaryCacheManager
from .cache import CompilationCache, compute_cache_key
from .errors import NoSourcesError
from .invoker import invoke
from .options import Option, apply_options
from .request import OutputSelection, build_request, normalize_output_selection, read_sources
from .result import CompilationResult, parse_output
from .version import LATEST, RequestedVersion, VersionIndex, VersionResolver, is_latest

logger = logging.getLogger(__name__)


class Compiler:
    def __init__(self, version: RequestedVersion = LATEST, cache_root: Union[str, Path, None] = None, *,
                 executable: Union[str, Path, None] = None,
                 session: Optional[requests.Session] = None,
                 base_url: Optional[str] = None,
                 platform: Optional[str] = None,
                 timeout: Optional[float] = None,
                 max_cache_entries: Optional[int] = None,
                 persistent_cache_dir: Union[str, Path, None] = None,
                 cache: Optional[CompilationCache] = None):
        """
        Args:
            version: pinned version ("0.8.19") or LATEST
            cache_root: directory for downloaded executables
            executable: use this solc instead of the managed cache
            session: requests session for the index and downloads
            base_url: binary distribution URL (default: SOLC_BINARIES_URL or soliditylang.org)
            platform: distribution platform directory (default: detected from the host)
            timeout: seconds allowed per solc run (default: no limit)
            max_cache_entries: bound the in-memory result cache (LRU)
            persistent_cache_dir: also keep results on disk in this directory
            cache: share an existing CompilationCache
        """
        self.session = session if session is not None else config.make_session()
        index = VersionIndex(self.session, base_url, platform)
        self.resolver = VersionResolver(index)
        self.binaries = BinaryCacheManager(Path(cache_root).expanduser() if cache_root else None, index)
        self.timeout = timeout

        if executable is not None:
            pinned = None if is_latest(version) else self.resolver.resolve(version)
            self.executable = self.binaries.validate(executable, pinned)
            self.version = pinned or self.resolver.resolve_local(version, self.executable)
        else:
            self.version = self.resolver.resolve(version)
            self.executable = self.binaries.ensure(self.version)
        logger.info("Using solc %s at %s", self.version, self.executable)

        self._store = None
        if cache is None:
            if persistent_cache_dir is not None:
                self._store = diskcache.Cache(str(Path(persistent_cache_dir).expanduser()))
            cache = CompilationCache(max_entries=max_cache_entries, store=self._store)
        self.cache = cache

    @property
    def cache_root(self) -> Path:
        return self.binaries.root

    def compile(self, source_dir: Union[str, Path], entry_contract: str, output_selection: OutputSelection,
                *options: Option) -> CompilationResult:
        """Compile every .sol file under ``source_dir``."""
        sources = read_sources(source_dir)
        if not sources:
            raise NoSourcesError(f"no .sol files found in {source_dir}")
        return self.compile_sources(sources, entry_contract, output_selection, *options)

    def compile_sources(self, sources: Mapping[str, str], entry_contract: str, output_selection: OutputSelection,
                        *options: Option) -> CompilationResult:
        """Compile in-memory sources keyed by source unit name."""
        if not sources:
            raise NoSourcesError("no sources given")
        compiler_options = apply_options(*options)
        normalize_output_selection(output_selection)
        key = compute_cache_key(self.version, compiler_options, sources, entry_contract, output_selection)

        def run() -> CompilationResult:
            request = build_request(sources, entry_contract, output_selection, compiler_options)
            logger.info("Compiling %s (%d source files) with solc %s", entry_contract, len(sources), self.version)
            raw = invoke(self.executable, request, timeout=self.timeout)
            result = parse_output(raw, output_selection)
            for warning in result.warnings:
                logger.warning("solc %s: %s", warning.severity, warning.message)
            return result

        return self.cache.get_or_compute(key, run)

    def close(self) -> None:
        if self._store is not None:
            self._store.close()
        self.session.close()

    def __enter__(self) -> "Compiler":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def new(version: RequestedVersion = LATEST, cache_root: Union[str, Path, None] = None, **kwargs) -> Compiler:
    """Shorthand for ``Compiler(version, cache_root, **kwargs)``."""
    return Compiler(version, cache_root, **kwargs)
