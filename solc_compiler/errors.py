# Copyright (c) 2023-2026 Cryft Labs. All rights reserved.
# Licensed under the Apache License, Version 2.0.
# This software is part of a patented system. See LICENSE and PATENT NOTICE.

"""
Error taxonomy
==============
Every failure raised by this package derives from ``SolcError`` and names
the phase it happened in:

    resolve  -> VersionResolutionError
    fetch    -> BinaryUnavailableError
    build    -> InvalidDirectoryError, SourceReadError, NoSourcesError,
                ConfigurationError
    invoke   -> ProcessInvocationError
    parse    -> ProtocolError
    compile  -> CompilationError
"""

from __future__ import annotations

from typing import List, Optional


class SolcError(Exception):
    phase = "unknown"

    def __init__(self, message: str):
        super().__init__(f"{self.phase}: {message}")
        self.message = message


class VersionResolutionError(SolcError):
    phase = "resolve"


class BinaryUnavailableError(SolcError):
    phase = "fetch"


class InvalidDirectoryError(SolcError):
    phase = "build"

    def __init__(self, path):
        super().__init__(f"{path} is not a directory")
        self.path = path


class SourceReadError(SolcError):
    phase = "build"

    def __init__(self, path, reason: str):
        super().__init__(f"cannot read {path}: {reason}")
        self.path = path


class NoSourcesError(SolcError):
    phase = "build"


class ConfigurationError(SolcError):
    phase = "build"


class ProcessInvocationError(SolcError):
    phase = "invoke"

    def __init__(self, message: str, returncode: Optional[int] = None, stderr: str = ""):
        detail = message
        if returncode is not None:
            detail += f" (exit code {returncode})"
        if stderr.strip():
            detail += f": {stderr.strip()}"
        super().__init__(detail)
        self.returncode = returncode
        self.stderr = stderr


class ProtocolError(SolcError):
    phase = "parse"


class CompilationError(SolcError):
    """solc answered, but reported at least one error-severity diagnostic."""

    phase = "compile"

    def __init__(self, diagnostics: List):
        self.diagnostics = list(diagnostics)
        errors = [d for d in self.diagnostics if d.is_error]
        lines = [d.formatted_message or d.message for d in errors]
        super().__init__(
            f"{len(errors)} error(s) reported by solc:\n" + "\n".join(lines)
        )

    @property
    def messages(self) -> List[str]:
        return [d.message for d in self.diagnostics]


__all__ = [
    "SolcError",
    "VersionResolutionError",
    "BinaryUnavailableError",
    "InvalidDirectoryError",
    "SourceReadError",
    "NoSourcesError",
    "ConfigurationError",
    "ProcessInvocationError",
    "ProtocolError",
    "CompilationError",
]
