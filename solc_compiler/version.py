# Copyright (c) 2023-2026 Cryft Labs. All rights reserved.
# Licensed under the Apache License, Version 2.0.
# This software is part of a patented system. See LICENSE and PATENT NOTICE.

"""
Version resolution
==================
Turns a requested toolchain version (a pinned ``X.Y.Z`` or the ``LATEST``
sentinel) into a concrete ``Version``. Only ``LATEST`` touches the network:
it reads the platform's ``list.json`` from the binary distribution and picks
the newest release listed there.
"""

from __future__ import annotations

import logging
import platform as _platform
import re
import subprocess
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Union

import requests

from . import config
from .errors import VersionResolutionError

logger = logging.getLogger(__name__)

_VERSION_RE = re.compile(r"^v?(\d+)\.(\d+)\.(\d+)(?:\+\S*)?$")
_PROBE_RE = re.compile(r"Version:\s*(\d+\.\d+\.\d+)")


@dataclass(frozen=True, order=True)
class Version:
    major: int
    minor: int
    patch: int

    @classmethod
    def parse(cls, text: str) -> "Version":
        """Parse '0.8.19', 'v0.8.19' or '0.8.19+commit.7dd6d404'."""
        m = _VERSION_RE.match(str(text).strip())
        if not m:
            raise ValueError(f"not a solc version: {text!r}")
        return cls(*(int(part) for part in m.groups()))

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"


class _Latest:
    """Resolve to the newest release known to the index at call time."""

    def __repr__(self) -> str:
        return "LATEST"


LATEST = _Latest()

RequestedVersion = Union[Version, str, _Latest]


def is_latest(requested: RequestedVersion) -> bool:
    if requested is LATEST:
        return True
    return isinstance(requested, str) and requested.strip().lower() == "latest"


class UnsupportedPlatformError(ValueError):
    """No solc builds are published for this host."""


def platform_tag() -> str:
    """Name of the binaries.soliditylang.org directory for this host."""
    machine = _platform.machine().lower()
    if machine not in ("x86_64", "amd64"):
        # Only macOS publishes universal builds usable on arm64.
        if not (sys.platform == "darwin" and machine == "arm64"):
            raise UnsupportedPlatformError(f"no solc builds published for {sys.platform}/{machine}")
    if sys.platform.startswith("linux"):
        return "linux-amd64"
    if sys.platform == "darwin":
        return "macosx-amd64"
    if sys.platform in ("win32", "cygwin"):
        return "windows-amd64"
    raise UnsupportedPlatformError(f"no solc builds published for {sys.platform}/{machine}")


def probe_version(executable: Union[str, Path], timeout: float = config.SELF_CHECK_TIMEOUT) -> Optional[Version]:
    """
    Run ``<executable> --version`` and return the version it reports.

    Returns None when the command succeeds but prints no recognisable
    ``Version:`` line. Raises ``OSError``, ``subprocess.TimeoutExpired`` or
    ``subprocess.CalledProcessError`` if the executable can't be run.
    """
    proc = subprocess.run(
        [str(executable), "--version"],
        stdin=subprocess.DEVNULL,
        capture_output=True,
        text=True,
        timeout=timeout,
        check=True,
    )
    m = _PROBE_RE.search(proc.stdout)
    return Version.parse(m.group(1)) if m else None


# ────────────────────────────────────────────
# Remote index
# ────────────────────────────────────────────

@dataclass(frozen=True)
class Release:
    version: Version
    path: str
    sha256: Optional[str] = None


class VersionIndex:
    """Reader for ``<base_url>/<platform>/list.json``."""

    def __init__(self, session: Optional[requests.Session] = None, base_url: Optional[str] = None,
                 platform: Optional[str] = None, timeout: float = config.HTTP_TIMEOUT):
        self.session = session if session is not None else config.make_session()
        self.base_url = (base_url or config.binaries_url()).rstrip("/")
        self._platform = platform
        self.timeout = timeout

    @property
    def platform(self) -> str:
        if self._platform is None:
            self._platform = platform_tag()
        return self._platform

    def artifact_url(self, path: str) -> str:
        return f"{self.base_url}/{self.platform}/{path}"

    def releases(self) -> Dict[Version, Release]:
        """
        Fetch the index and return every listed release.

        Raises ``requests.RequestException`` when the index can't be
        downloaded and ``ValueError`` when its content is malformed.
        """
        url = self.artifact_url("list.json")
        logger.debug("Fetching solc index %s", url)
        response = self.session.get(url, timeout=self.timeout)
        response.raise_for_status()
        data = response.json()

        if not isinstance(data, dict) or not isinstance(data.get("releases"), dict):
            raise ValueError(f"{url} has no 'releases' object")

        checksums = {}
        for build in data.get("builds") or []:
            if isinstance(build, dict) and build.get("path"):
                checksums[build["path"]] = build.get("sha256")

        releases = {}
        for raw_version, path in data["releases"].items():
            if not isinstance(path, str):
                raise ValueError(f"{url}: release {raw_version!r} has no artifact path")
            version = Version.parse(raw_version)
            releases[version] = Release(version, path, checksums.get(path))
        if not releases:
            raise ValueError(f"{url} lists no releases")
        return releases


# ────────────────────────────────────────────
# Resolver
# ────────────────────────────────────────────

class VersionResolver:
    def __init__(self, index: Optional[VersionIndex] = None):
        self.index = index if index is not None else VersionIndex()

    def resolve(self, requested: RequestedVersion) -> Version:
        if isinstance(requested, Version):
            return requested
        if not is_latest(requested):
            try:
                return Version.parse(requested)
            except ValueError as e:
                raise VersionResolutionError(str(e)) from e

        try:
            releases = self.index.releases()
        except UnsupportedPlatformError as e:
            raise VersionResolutionError(f"unsupported platform: {e}") from e
        except ValueError as e:
            # also catches requests' JSONDecodeError
            raise VersionResolutionError(f"version index malformed: {e}") from e
        except requests.RequestException as e:
            raise VersionResolutionError(f"version index unreachable: {e}") from e

        newest = max(releases)
        logger.info("Resolved latest solc release to %s", newest)
        return newest

    def resolve_local(self, requested: RequestedVersion, executable: Union[str, Path]) -> Version:
        """Resolve against an explicitly supplied executable instead of the index."""
        if not is_latest(requested):
            return self.resolve(requested)
        try:
            version = probe_version(executable)
        except (OSError, subprocess.SubprocessError) as e:
            raise VersionResolutionError(f"cannot query version of {executable}: {e}") from e
        if version is None:
            raise VersionResolutionError(f"{executable} did not report a version")
        return version
