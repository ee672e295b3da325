# Copyright (c) 2023-2026 Cryft Labs. All rights reserved.
# Licensed under the Apache License, Version 2.0.
# This software is part of a patented system. See LICENSE and PATENT NOTICE.

"""
Standard-JSON request building
==============================
Collects ``.sol`` sources and shapes them, together with the output
selection and compiler options, into the payload ``solc --standard-json``
reads from stdin:

    {
        "language": "Solidity",
        "sources":  {"Token.sol": {"content": "..."}},
        "settings": {"outputSelection": {...}, "optimizer": {...}, ...}
    }
"""

from __future__ import annotations

import copy
import json
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Union

from .errors import ConfigurationError, InvalidDirectoryError, NoSourcesError, SourceReadError
from .options import CompilerOptions

LANGUAGE = "Solidity"

OutputSelection = Mapping[str, Mapping[str, List[str]]]


def discover_sol_files(source_dir: Path) -> List[Path]:
    """Find all .sol files in the directory, recursively."""
    return [f for f in sorted(source_dir.rglob("*.sol")) if f.is_file()]


def read_sources(source_dir: Union[str, Path]) -> Dict[str, str]:
    """Map each .sol file's POSIX path, relative to ``source_dir``, to its text."""
    root = Path(source_dir)
    if not root.is_dir():
        raise InvalidDirectoryError(root)
    sources = {}
    for f in discover_sol_files(root):
        try:
            sources[f.relative_to(root).as_posix()] = f.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            raise SourceReadError(f, f"not valid UTF-8 ({e.reason} at byte {e.start})") from e
        except OSError as e:
            raise SourceReadError(f, e.strerror or str(e)) from e
    return sources


def normalize_output_selection(selection: OutputSelection) -> Dict[str, Dict[str, List[str]]]:
    """
    Validate an output selection and return its canonical form.

    Keys are sorted and artifact lists sorted and de-duplicated; solc treats
    both orderings as equivalent, so the canonical form is safe for hashing.
    """
    if not isinstance(selection, Mapping):
        raise ConfigurationError("output selection must be a mapping of file names")

    normalized: Dict[str, Dict[str, List[str]]] = {}
    selectors = 0
    for file_key in sorted(selection):
        contracts = selection[file_key]
        if not isinstance(file_key, str) or not isinstance(contracts, Mapping):
            raise ConfigurationError(f"output selection for {file_key!r} must map contract names to artifact lists")
        normalized[file_key] = {}
        for contract_key in sorted(contracts):
            artifacts = contracts[contract_key]
            if isinstance(artifacts, str) or not all(isinstance(a, str) for a in artifacts):
                raise ConfigurationError(f"artifacts for {file_key!r}/{contract_key!r} must be a list of strings")
            normalized[file_key][contract_key] = sorted(set(artifacts))
            selectors += len(normalized[file_key][contract_key])

    if selectors == 0:
        raise ConfigurationError("output selection is empty; request at least one artifact")
    return normalized


@dataclass(frozen=True)
class CompilationRequest:
    sources: Mapping[str, str]
    settings: Mapping[str, Any]
    entry_contract: str = ""
    language: str = LANGUAGE

    def to_standard_json(self) -> Dict[str, Any]:
        return {
            "language": self.language,
            "sources": {name: {"content": text} for name, text in sorted(self.sources.items())},
            "settings": copy.deepcopy(dict(self.settings)),
        }

    def to_bytes(self) -> bytes:
        return json.dumps(self.to_standard_json()).encode("utf-8")


def build_request(sources: Mapping[str, str], entry_contract: str, output_selection: OutputSelection,
                  options: CompilerOptions) -> CompilationRequest:
    if not sources:
        raise NoSourcesError("no .sol source files to compile")
    normalize_output_selection(output_selection)

    settings = options.to_settings()
    settings["outputSelection"] = {
        file_key: {contract_key: list(artifacts) for contract_key, artifacts in contracts.items()}
        for file_key, contracts in output_selection.items()
    }
    return CompilationRequest(
        sources=MappingProxyType(dict(sources)),
        settings=MappingProxyType(settings),
        entry_contract=entry_contract,
    )
