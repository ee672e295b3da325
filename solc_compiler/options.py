# Copyright (c) 2023-2026 Cryft Labs. All rights reserved.
# Licensed under the Apache License, Version 2.0.
# This software is part of a patented system. See LICENSE and PATENT NOTICE.

"""
Compiler options
================
Options are small functions that edit one ``CompilerOptions`` record:

    compiler.compile("contracts", "Token", selection,
                     with_optimizer(Optimizer(enabled=True, runs=999999)),
                     with_evm_version("cancun"))

| Option              | Effect                                  | Default             |
|---------------------|-----------------------------------------|---------------------|
| with_optimizer      | settings.optimizer.{enabled,runs}       | disabled, 200 runs  |
| with_evm_version    | settings.evmVersion                     | solc's own default  |
| with_via_ir         | settings.viaIR                          | off                 |
| with_remappings     | settings.remappings (order preserved)   | none                |
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from . import config
from .errors import ConfigurationError


@dataclass(frozen=True)
class Optimizer:
    enabled: bool = False
    runs: int = config.DEFAULT_OPTIMIZER_RUNS


@dataclass
class CompilerOptions:
    optimizer: Optimizer = field(default_factory=Optimizer)
    evm_version: Optional[str] = None
    via_ir: bool = False
    remappings: List[str] = field(default_factory=list)

    def validate(self) -> None:
        if not isinstance(self.optimizer.runs, int) or self.optimizer.runs < 0:
            raise ConfigurationError(f"optimizer runs must be a non-negative integer, got {self.optimizer.runs!r}")
        if self.evm_version is not None and self.evm_version not in config.VALID_EVM_VERSIONS:
            raise ConfigurationError(
                f"unknown EVM version {self.evm_version!r}; expected one of {', '.join(config.VALID_EVM_VERSIONS)}"
            )
        for remapping in self.remappings:
            if "=" not in remapping:
                raise ConfigurationError(f"remapping {remapping!r} must look like 'prefix=target'")

    def normalized(self) -> Dict[str, Any]:
        """
        Canonical form used for cache keys.

        Every field is present with its default filled in, so two records
        describing the same intent produce the same dict.
        """
        return {
            "optimizer": {
                "enabled": bool(self.optimizer.enabled),
                "runs": int(self.optimizer.runs),
            },
            "evmVersion": self.evm_version,
            "viaIR": bool(self.via_ir),
            "remappings": list(self.remappings),
        }

    def to_settings(self) -> Dict[str, Any]:
        """Standard-JSON ``settings`` fragment; unset keys are left out for older solc releases."""
        normalized = self.normalized()
        settings: Dict[str, Any] = {"optimizer": normalized["optimizer"]}
        if self.evm_version is not None:
            settings["evmVersion"] = self.evm_version
        if self.via_ir:
            settings["viaIR"] = True
        if self.remappings:
            settings["remappings"] = normalized["remappings"]
        return settings


Option = Callable[[CompilerOptions], None]


def with_optimizer(optimizer: Optional[Optimizer] = None) -> Option:
    optimizer = optimizer if optimizer is not None else Optimizer(enabled=True)

    def apply(options: CompilerOptions) -> None:
        options.optimizer = optimizer
    return apply


def with_evm_version(evm_version: str) -> Option:
    def apply(options: CompilerOptions) -> None:
        options.evm_version = evm_version
    return apply


def with_via_ir(enabled: bool = True) -> Option:
    def apply(options: CompilerOptions) -> None:
        options.via_ir = enabled
    return apply


def with_remappings(*remappings: str) -> Option:
    def apply(options: CompilerOptions) -> None:
        options.remappings.extend(remappings)
    return apply


def apply_options(*options: Option) -> CompilerOptions:
    """Build a validated ``CompilerOptions`` from defaults plus ``options``, in order."""
    record = CompilerOptions()
    for option in options:
        option(record)
    record.validate()
    return record
