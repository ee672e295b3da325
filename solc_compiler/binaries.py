# Copyright (c) 2023-2026 Cryft Labs. All rights reserved.
# Licensed under the Apache License, Version 2.0.
# This software is part of a patented system. See LICENSE and PATENT NOTICE.

"""
Binary cache
============
Keeps one solc executable per version under a cache root:

    <cache_root>/
        solc-v0.8.19
        solc-v0.8.24
        ...

A cached file is trusted only after it passes validation (regular file,
executable bit, ``--version`` exits 0 and reports the expected version).
Anything else is deleted and downloaded again. Downloads go to a temp file
in the same directory and are renamed into place only once the checksum
and self-check pass, so the canonical name never points at a partial file.
"""

from __future__ import annotations

import hashlib
import logging
import os
import subprocess
import sys
import tempfile
import threading
from pathlib import Path
from typing import Dict, Optional, Union

import requests

from . import config
from .errors import BinaryUnavailableError
from .version import Release, UnsupportedPlatformError, Version, VersionIndex, probe_version

logger = logging.getLogger(__name__)


class BinaryCacheManager:
    def __init__(self, root: Union[str, Path, None] = None, index: Optional[VersionIndex] = None,
                 self_check_timeout: float = config.SELF_CHECK_TIMEOUT):
        self.root = Path(root) if root is not None else config.default_cache_root()
        self.index = index if index is not None else VersionIndex()
        self.self_check_timeout = self_check_timeout
        self._locks: Dict[Path, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def path_for(self, version: Version) -> Path:
        """Canonical location of the executable for ``version``."""
        suffix = ".exe" if sys.platform in ("win32", "cygwin") else ""
        return self.root / f"solc-v{version}{suffix}"

    def ensure(self, version: Version) -> Path:
        """Return a validated executable for ``version``, downloading it if needed."""
        path = self.path_for(version)
        with self._lock_for(path):
            if path.exists() or path.is_symlink():
                reason = self.check(path, version)
                if reason is None:
                    logger.debug("Using cached solc %s at %s", version, path)
                    return path
                logger.warning("Cached solc at %s is unusable (%s); fetching again", path, reason)
                try:
                    path.unlink()
                except FileNotFoundError:
                    pass
                except OSError as e:
                    raise BinaryUnavailableError(f"cannot remove broken binary {path}: {e}") from e
            self._fetch(version, path)
        return path

    def validate(self, executable: Union[str, Path], version: Optional[Version] = None) -> Path:
        """Check an explicitly supplied executable; raise if it can't be used."""
        path = Path(executable)
        reason = self.check(path, version)
        if reason is not None:
            raise BinaryUnavailableError(f"solc at {path} is unusable: {reason}")
        return path

    def check(self, path: Path, version: Optional[Version] = None) -> Optional[str]:
        """Return why ``path`` is not a usable solc, or None if it is."""
        if not path.is_file():
            return "missing or not a regular file"
        if not os.access(path, os.X_OK):
            return "not executable"
        try:
            reported = probe_version(path, timeout=self.self_check_timeout)
        except subprocess.CalledProcessError as e:
            return f"self-check exited with status {e.returncode}"
        except subprocess.TimeoutExpired:
            return "self-check timed out"
        except OSError as e:
            return f"self-check failed to start: {e}"
        if version is not None and reported is not None and reported != version:
            return f"reports version {reported}, expected {version}"
        return None

    def _lock_for(self, path: Path) -> threading.Lock:
        with self._locks_guard:
            return self._locks.setdefault(path, threading.Lock())

    # ────────────────────────────────────────────
    # Download
    # ────────────────────────────────────────────

    def _release(self, version: Version) -> Release:
        try:
            releases = self.index.releases()
        except UnsupportedPlatformError as e:
            raise BinaryUnavailableError(f"unsupported platform: {e}") from e
        except ValueError as e:
            raise BinaryUnavailableError(f"cannot read solc index: {e}") from e
        except requests.RequestException as e:
            raise BinaryUnavailableError(f"solc index unreachable: {e}") from e
        release = releases.get(version)
        if release is None:
            raise BinaryUnavailableError(f"solc {version} is not published for {self.index.platform}")
        return release

    def _fetch(self, version: Version, path: Path) -> None:
        release = self._release(version)
        url = self.index.artifact_url(release.path)
        logger.info("Downloading solc %s from %s", version, url)

        try:
            self.root.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.root, prefix=f".{path.name}.", suffix=".tmp")
        except OSError as e:
            raise BinaryUnavailableError(f"cannot write to cache root {self.root}: {e}") from e

        tmp_path = Path(tmp_name)
        try:
            digest = hashlib.sha256()
            with os.fdopen(fd, "wb") as f:
                with self.index.session.get(url, stream=True, timeout=self.index.timeout) as response:
                    response.raise_for_status()
                    for chunk in response.iter_content(chunk_size=config.DOWNLOAD_CHUNK_SIZE):
                        digest.update(chunk)
                        f.write(chunk)
                f.flush()
                os.fsync(f.fileno())

            if release.sha256:
                expected = release.sha256.lower().removeprefix("0x")
                if digest.hexdigest() != expected:
                    raise BinaryUnavailableError(
                        f"checksum mismatch for solc {version}: expected {expected}, got {digest.hexdigest()}"
                    )

            os.chmod(tmp_path, 0o755)
            reason = self.check(tmp_path, version)
            if reason is not None:
                raise BinaryUnavailableError(f"downloaded solc {version} is unusable: {reason}")

            os.replace(tmp_path, path)
            logger.info("Installed solc %s at %s", version, path)
        except requests.RequestException as e:
            raise BinaryUnavailableError(f"download of {url} failed: {e}") from e
        except OSError as e:
            raise BinaryUnavailableError(f"cannot install solc {version} at {path}: {e}") from e
        finally:
            if tmp_path.exists():
                tmp_path.unlink()
