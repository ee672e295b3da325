# Copyright (c) 2023-2026 Cryft Labs. All rights reserved.
# Licensed under the Apache License, Version 2.0.
# This software is part of a patented system. See LICENSE and PATENT NOTICE.

"""Download, cache and drive solc through its Standard-JSON interface."""

from .binaries import BinaryCacheManager
from .cache import CompilationCache, compute_cache_key
from .compiler import Compiler, new
from .errors import (
    BinaryUnavailableError,
    CompilationError,
    ConfigurationError,
    InvalidDirectoryError,
    NoSourcesError,
    ProcessInvocationError,
    ProtocolError,
    SolcError,
    SourceReadError,
    VersionResolutionError,
)
from .invoker import RawOutput, invoke
from .options import (
    CompilerOptions,
    Optimizer,
    apply_options,
    with_evm_version,
    with_optimizer,
    with_remappings,
    with_via_ir,
)
from .request import CompilationRequest, build_request, read_sources
from .result import CompilationResult, Contract, Diagnostic, SourceLocation, parse_output
from .version import LATEST, Version, VersionIndex, VersionResolver

VERSION_LATEST = LATEST

__all__ = [
    "BinaryCacheManager",
    "BinaryUnavailableError",
    "CompilationCache",
    "CompilationError",
    "CompilationRequest",
    "CompilationResult",
    "Compiler",
    "CompilerOptions",
    "ConfigurationError",
    "Contract",
    "Diagnostic",
    "InvalidDirectoryError",
    "LATEST",
    "NoSourcesError",
    "Optimizer",
    "ProcessInvocationError",
    "ProtocolError",
    "RawOutput",
    "SolcError",
    "SourceLocation",
    "SourceReadError",
    "VERSION_LATEST",
    "Version",
    "VersionIndex",
    "VersionResolutionError",
    "VersionResolver",
    "apply_options",
    "build_request",
    "compute_cache_key",
    "invoke",
    "new",
    "parse_output",
    "read_sources",
    "with_evm_version",
    "with_optimizer",
    "with_remappings",
    "with_via_ir",
]
