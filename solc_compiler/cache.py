# Copyright (c) 2023-2026 Cryft Labs. All rights reserved.
# Licensed under the Apache License, Version 2.0.
# This software is part of a patented system. See LICENSE and PATENT NOTICE.

"""
Compilation cache
=================
Memoizes compilation results by a fingerprint of everything that can change
solc's output. Concurrent requests for the same key share one computation
(single-flight); a failed computation is never stored. Each caller gets its
own copy of the result, so changing it leaves the cached entry intact.

Results live in memory for the life of the cache. Pass a ``diskcache.Cache``
as ``store`` to keep them across processes as well.
"""

from __future__ import annotations

import copy
import hashlib
import json
import logging
import threading
from collections import OrderedDict
from typing import Any, Callable, Dict, Mapping, Optional

from .options import CompilerOptions
from .request import OutputSelection, normalize_output_selection
from .result import CompilationResult
from .version import Version

logger = logging.getLogger(__name__)

# Bump when the cached result layout changes.
CACHE_FORMAT = 1


def compute_cache_key(version: Version, options: CompilerOptions, sources: Mapping[str, str],
                      entry_contract: str, output_selection: OutputSelection) -> str:
    payload = {
        "format": CACHE_FORMAT,
        "version": str(version),
        "options": options.normalized(),
        "sources": {
            name: hashlib.sha256(text.encode("utf-8")).hexdigest()
            for name, text in sources.items()
        },
        "entry": entry_contract,
        "outputSelection": normalize_output_selection(output_selection),
    }
    canonical = json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


class _Flight:
    def __init__(self):
        self.done = threading.Event()
        self.result: Optional[CompilationResult] = None
        self.error: Optional[BaseException] = None


class CompilationCache:
    def __init__(self, max_entries: Optional[int] = None, store: Any = None):
        if max_entries is not None and max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.max_entries = max_entries
        self.store = store
        self._entries: "OrderedDict[str, CompilationResult]" = OrderedDict()
        self._flights: Dict[str, _Flight] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._entries

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def get_or_compute(self, key: str, compute: Callable[[], CompilationResult]) -> CompilationResult:
        with self._lock:
            if key in self._entries:
                self._entries.move_to_end(key)
                logger.debug("Compilation cache hit %s", key[:12])
                return copy.deepcopy(self._entries[key])
            flight = self._flights.get(key)
            leader = flight is None
            if leader:
                flight = self._flights[key] = _Flight()

        if not leader:
            logger.debug("Waiting on in-flight compilation %s", key[:12])
            flight.done.wait()
            if flight.error is not None:
                raise flight.error
            return copy.deepcopy(flight.result)

        try:
            result = self._load(key)
            if result is None:
                logger.debug("Compilation cache miss %s", key[:12])
                result = compute()
                self._persist(key, result)
            flight.result = result
            with self._lock:
                self._remember(key, result)
            return copy.deepcopy(result)
        except BaseException as e:
            flight.error = e
            raise
        finally:
            with self._lock:
                del self._flights[key]
            flight.done.set()

    def _remember(self, key: str, result: CompilationResult) -> None:
        self._entries[key] = result
        self._entries.move_to_end(key)
        if self.max_entries is not None:
            while len(self._entries) > self.max_entries:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug("Evicted compilation %s", evicted[:12])

    def _load(self, key: str) -> Optional[CompilationResult]:
        if self.store is None:
            return None
        result = self.store.get(key)
        if result is not None:
            logger.debug("Loaded compilation %s from persistent store", key[:12])
        return result

    def _persist(self, key: str, result: CompilationResult) -> None:
        if self.store is not None:
            self.store.set(key, result)
