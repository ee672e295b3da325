# Copyright (c) 2023-2026 Cryft Labs. All rights reserved.
# Licensed under the Apache License, Version 2.0.
# This software is part of a patented system. See LICENSE and PATENT NOTICE.

"""
Standard-JSON output parsing
============================
Decodes solc's answer into typed results:

    CompilationResult
        ["Token.sol"]["Token"] -> Contract(abi, bytecode, deployed_bytecode, ...)
        .warnings              -> [Diagnostic, ...]

Error-severity diagnostics raise ``CompilationError``. Output that doesn't
have the Standard-JSON shape raises ``ProtocolError``, which usually means
the request was sent to an incompatible solc build.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Union

from . import config
from .errors import CompilationError, ProtocolError
from .invoker import RawOutput

_KNOWN_SECTIONS = ("errors", "contracts", "sources")


@dataclass(frozen=True)
class SourceLocation:
    file: str
    start: int = -1
    end: int = -1


@dataclass(frozen=True)
class Diagnostic:
    severity: str
    message: str
    type: str = ""
    formatted_message: str = ""
    location: Optional[SourceLocation] = None

    @property
    def is_error(self) -> bool:
        return self.severity == "error"


def _hex_len(code: Optional[str]) -> int:
    # Unlinked library placeholders aren't valid hex, so count characters.
    if not code:
        return 0
    return len(code.removeprefix("0x")) // 2


@dataclass(frozen=True)
class Contract:
    abi: Any = None
    bytecode: Optional[str] = None
    deployed_bytecode: Optional[str] = None
    metadata: Optional[str] = None

    @property
    def creation_size(self) -> int:
        return _hex_len(self.bytecode)

    @property
    def runtime_size(self) -> int:
        return _hex_len(self.deployed_bytecode)

    @property
    def exceeds_size_limit(self) -> bool:
        """True when the runtime code is over the EIP-170 limit."""
        return self.runtime_size > config.CONTRACT_SIZE_LIMIT


@dataclass
class CompilationResult(Mapping):
    contracts: Dict[str, Dict[str, Contract]] = field(default_factory=dict)
    warnings: List[Diagnostic] = field(default_factory=list)

    def __getitem__(self, source_name: str) -> Dict[str, Contract]:
        return self.contracts[source_name]

    def __iter__(self) -> Iterator[str]:
        return iter(self.contracts)

    def __len__(self) -> int:
        return len(self.contracts)

    def contract_names(self) -> List[str]:
        return sorted({name for by_name in self.contracts.values() for name in by_name})

    def find(self, contract_name: str) -> Optional[Contract]:
        """First contract called ``contract_name``, searching files in name order."""
        for source_name in sorted(self.contracts):
            contract = self.contracts[source_name].get(contract_name)
            if contract is not None:
                return contract
        return None


# ────────────────────────────────────────────
# Decoding
# ────────────────────────────────────────────

def _diagnostic(entry: Any) -> Diagnostic:
    if not isinstance(entry, dict) or not isinstance(entry.get("severity"), str):
        raise ProtocolError(f"malformed diagnostic entry: {entry!r}")
    location = None
    loc = entry.get("sourceLocation")
    if isinstance(loc, dict) and isinstance(loc.get("file"), str):
        location = SourceLocation(loc["file"], int(loc.get("start", -1)), int(loc.get("end", -1)))
    return Diagnostic(
        severity=entry["severity"].lower(),
        message=str(entry.get("message", "")),
        type=str(entry.get("type", "")),
        formatted_message=str(entry.get("formattedMessage", "")),
        location=location,
    )


def _artifact_object(evm: Dict[str, Any], key: str) -> Optional[str]:
    section = evm.get(key)
    if section is None:
        return None
    if not isinstance(section, dict):
        raise ProtocolError(f"evm.{key} must be an object")
    return section.get("object")


def _contract(source_name: str, contract_name: str, data: Any) -> Contract:
    if not isinstance(data, dict):
        raise ProtocolError(f"contract entry {source_name}:{contract_name} must be an object")
    evm = data.get("evm") or {}
    if not isinstance(evm, dict):
        raise ProtocolError(f"contract entry {source_name}:{contract_name} has a malformed 'evm' section")
    return Contract(
        abi=data.get("abi"),
        bytecode=_artifact_object(evm, "bytecode"),
        deployed_bytecode=_artifact_object(evm, "deployedBytecode"),
        metadata=data.get("metadata"),
    )


def _matches(key: str, name: str) -> bool:
    # solc only knows the bare "*" wildcard; anything else is an exact name
    return key == "*" or key == name


def is_selected(output_selection: Mapping, source_name: str, contract_name: str) -> bool:
    """Whether some file/contract key pair of the selection asks for this contract."""
    for file_key, contracts in output_selection.items():
        if not _matches(file_key, source_name):
            continue
        for contract_key, artifacts in contracts.items():
            # "" selects file-level outputs (e.g. the AST), not contracts
            if contract_key and artifacts and _matches(contract_key, contract_name):
                return True
    return False


def parse_output(raw: Union[RawOutput, Dict[str, Any]], output_selection: Optional[Mapping] = None) -> CompilationResult:
    data = raw.data if isinstance(raw, RawOutput) else raw
    if not isinstance(data, dict) or not any(key in data for key in _KNOWN_SECTIONS):
        raise ProtocolError("solc output has none of the 'errors', 'contracts' or 'sources' sections")

    errors = data.get("errors", [])
    if not isinstance(errors, list):
        raise ProtocolError("'errors' must be a list")
    diagnostics = [_diagnostic(entry) for entry in errors]
    if any(d.is_error for d in diagnostics):
        raise CompilationError(diagnostics)

    contracts = data.get("contracts", {})
    if not isinstance(contracts, dict):
        raise ProtocolError("'contracts' must be an object")

    result = CompilationResult(warnings=diagnostics)
    for source_name, by_name in contracts.items():
        if not isinstance(by_name, dict):
            raise ProtocolError(f"contracts of {source_name} must be an object")
        for contract_name, entry in by_name.items():
            if output_selection is not None and not is_selected(output_selection, source_name, contract_name):
                raise ProtocolError(f"solc returned unrequested contract {source_name}:{contract_name}")
            result.contracts.setdefault(source_name, {})[contract_name] = _contract(source_name, contract_name, entry)
    return result
