# Copyright (c) 2023-2026 Cryft Labs. All rights reserved.
# Licensed under the Apache License, Version 2.0.
# This software is part of a patented system. See LICENSE and PATENT NOTICE.

"""Run ``solc --standard-json`` on one request and capture its answer."""

from __future__ import annotations

import json
import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Union

from .errors import ProcessInvocationError, ProtocolError
from .request import CompilationRequest

logger = logging.getLogger(__name__)

STANDARD_JSON_FLAG = "--standard-json"


@dataclass(frozen=True)
class RawOutput:
    data: Dict[str, Any]
    returncode: int
    stderr: str = ""


def invoke(executable: Union[str, Path], request: CompilationRequest,
           timeout: Optional[float] = None) -> RawOutput:
    """
    Feed ``request`` to solc on stdin and decode the JSON it prints.

    A non-zero exit is only fatal when stdout holds no JSON; solc also exits
    non-zero when it reports diagnostics, which the result parser judges.
    """
    cmd = [str(executable), STANDARD_JSON_FLAG]
    payload = request.to_bytes()
    logger.debug("Running %s with a %d byte request", " ".join(cmd), len(payload))

    # run() writes stdin and drains stdout/stderr together, so large
    # payloads can't deadlock on full pipes.
    try:
        proc = subprocess.run(cmd, input=payload, capture_output=True, timeout=timeout)
    except subprocess.TimeoutExpired as e:
        raise ProcessInvocationError(f"{executable} timed out after {timeout}s") from e
    except OSError as e:
        raise ProcessInvocationError(f"cannot run {executable}: {e}") from e

    stdout = proc.stdout.decode("utf-8", errors="replace").strip()
    stderr = proc.stderr.decode("utf-8", errors="replace")

    if not stdout:
        raise ProcessInvocationError(f"{executable} produced no output", proc.returncode, stderr)

    try:
        data = json.loads(stdout)
    except json.JSONDecodeError as e:
        if proc.returncode != 0:
            raise ProcessInvocationError(f"{executable} failed", proc.returncode, stderr) from e
        raise ProtocolError(f"solc output is not JSON: {e}") from e

    if proc.returncode != 0:
        logger.debug("solc exited with %d but produced JSON output", proc.returncode)
    return RawOutput(data=data, returncode=proc.returncode, stderr=stderr)
