import hashlib
import json
import os
import sys
from pathlib import Path

import pytest
import requests

BASE_URL = "https://binaries.test"
PLATFORM = "linux-amd64"

STUB_TEMPLATE = """#!/bin/sh
if [ "$1" = "--version" ]; then
  echo "solc, the solidity compiler commandline interface"
{version_line}
  exit {version_exit}
fi
echo run >> "{calls}"
cat > "{request}"
{delay}
cat <<'__SOLC_OUTPUT__'
{output}
__SOLC_OUTPUT__
exit {exit_code}
"""


def stub_script(calls: Path, request: Path, output='{"contracts":{}}', version="0.8.19",
                exit_code=0, version_exit=0, delay=0.0) -> str:
    if not isinstance(output, str):
        output = json.dumps(output)
    version_line = f'  echo "Version: {version}+commit.7dd6d404.Linux.g++"' if version else ""
    return STUB_TEMPLATE.format(
        version_line=version_line,
        version_exit=version_exit,
        calls=calls,
        request=request,
        delay=f"sleep {delay}" if delay else "",
        output=output,
        exit_code=exit_code,
    )


class StubSolc:
    """A shell script standing in for solc; counts runs and keeps the last request."""

    def __init__(self, path: Path):
        self.path = path
        self.calls_file = path.with_name(path.name + ".calls")
        self.request_file = path.with_name(path.name + ".request.json")

    def write(self, **kwargs) -> "StubSolc":
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(stub_script(self.calls_file, self.request_file, **kwargs))
        os.chmod(self.path, 0o755)
        return self

    def script(self, **kwargs) -> bytes:
        return stub_script(self.calls_file, self.request_file, **kwargs).encode()

    @property
    def runs(self) -> int:
        if not self.calls_file.exists():
            return 0
        return len(self.calls_file.read_text().splitlines())

    @property
    def last_request(self) -> dict:
        return json.loads(self.request_file.read_text())


@pytest.fixture
def make_stub(tmp_path):
    if sys.platform == "win32":
        pytest.skip("stub solc is a POSIX shell script")

    def make(path=None, **kwargs) -> StubSolc:
        stub = StubSolc(Path(path) if path else tmp_path / "bin" / "solc")
        return stub.write(**kwargs)
    return make


@pytest.fixture
def stub_solc(make_stub):
    return make_stub()


@pytest.fixture
def source_dir(tmp_path):
    src = tmp_path / "src"
    src.mkdir()
    (src / "Dummy.sol").write_text("pragma solidity ^0.8.0;\ncontract Dummy {}\n")
    return src


# ────────────────────────────────────────────
# Fake HTTP
# ────────────────────────────────────────────

class FakeResponse:
    def __init__(self, url, status_code=200, content=b""):
        self.url = url
        self.status_code = status_code
        self.content = content

    def json(self):
        return json.loads(self.content)

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} for {self.url}", response=self)

    def iter_content(self, chunk_size=1):
        for i in range(0, len(self.content), chunk_size):
            yield self.content[i:i + chunk_size]

    def close(self):
        pass

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()


class FakeSession:
    """Serves canned bodies by URL and records every GET."""

    def __init__(self, routes=None):
        self.routes = dict(routes or {})
        self.requested = []
        self.closed = False

    def get(self, url, **kwargs):
        self.requested.append(url)
        route = self.routes.get(url)
        if route is None:
            return FakeResponse(url, 404)
        if isinstance(route, Exception):
            raise route
        if isinstance(route, tuple):
            return FakeResponse(url, *route)
        if isinstance(route, (dict, list)):
            return FakeResponse(url, 200, json.dumps(route).encode())
        return FakeResponse(url, 200, route)

    def close(self):
        self.closed = True

    def count(self, suffix):
        return sum(1 for url in self.requested if url.endswith(suffix))


def release_listing(binaries, with_checksums=True):
    """list.json body for ``{version: binary bytes}``."""
    releases = {}
    builds = []
    for version, blob in binaries.items():
        path = f"solc-{PLATFORM}-v{version}+commit.deadbeef"
        releases[version] = path
        build = {"path": path, "version": version, "longVersion": f"{version}+commit.deadbeef"}
        if with_checksums:
            build["sha256"] = "0x" + hashlib.sha256(blob).hexdigest()
        builds.append(build)
    return {"builds": builds, "releases": releases, "latestRelease": max(releases, key=lambda v: tuple(map(int, v.split("."))))}


def distribution(binaries, with_checksums=True, **extra_routes):
    """Routes for a fake binary distribution hosting ``{version: binary bytes}``."""
    listing = release_listing(binaries, with_checksums)
    routes = {f"{BASE_URL}/{PLATFORM}/list.json": listing}
    for version, blob in binaries.items():
        routes[f"{BASE_URL}/{PLATFORM}/{listing['releases'][version]}"] = blob
    routes.update(extra_routes)
    return routes


@pytest.fixture
def fake_session():
    return FakeSession()
