# Copyright (c) 2023-2026 Cryft Labs. All rights reserved.
# Licensed under the Apache License, Version 2.0.
# This software is part of a patented system. See LICENSE and PATENT NOTICE.

"""
Solidity Compiler CLI
=====================
Compiles every .sol file in a directory with a managed solc and reports the
resulting bytecode sizes.

Usage:
    solc-compile contracts/                          # latest solc, optimizer on
    solc-compile contracts/ --contract Token         # report one contract
    solc-compile contracts/ --solc-version 0.8.19    # pin the compiler
    solc-compile contracts/ --evm berlin --runs 999999
    solc-compile contracts/ --output compiled_output # write artifacts
    solc-compile --clean-cache                       # remove downloaded solc binaries
"""

import argparse
import json
import logging
import shutil
import sys
from pathlib import Path

from . import config
from .compiler import Compiler
from .errors import CompilationError, SolcError
from .options import Optimizer, with_evm_version, with_optimizer, with_via_ir
from .version import LATEST

OUTPUT_SELECTION = {
    "*": {
        "*": ["abi", "evm.bytecode.object", "evm.deployedBytecode.object", "metadata"],
    },
}


# ────────────────────────────────────────────
# Output formatting
# ────────────────────────────────────────────

def print_results(result, contract_name: str = None):
    """Print compilation results."""
    contracts = [
        (source, name, contract)
        for source in sorted(result)
        for name, contract in sorted(result[source].items())
    ]
    if not contracts:
        print("No contracts found in compilation output.")
        return

    if contract_name:
        contracts = [c for c in contracts if c[1] == contract_name]
        if not contracts:
            print(f"Contract '{contract_name}' not found. Available: {result.contract_names()}")
            return

    for source, name, contract in contracts:
        print(f"{'='*70}")
        print(f"  Contract: {name}  ({source})")
        print(f"  Runtime size:  {contract.runtime_size} bytes ({contract.runtime_size / 1024:.1f} KB)")
        print(f"  Creation size: {contract.creation_size} bytes ({contract.creation_size / 1024:.1f} KB)")
        if contract.exceeds_size_limit:
            print(f"  WARNING: Exceeds EIP-170 contract size limit ({config.CONTRACT_SIZE_LIMIT:,} bytes)!")
        print(f"{'='*70}")
        print(f"\n  Runtime Bytecode:")
        print(f"  {(contract.deployed_bytecode or '')[:120]}...")
        print(f"\n  Creation Bytecode:")
        print(f"  {(contract.bytecode or '')[:120]}...")
        print(f"\n  ABI entries: {len(contract.abi or [])}")
        print()

    for warning in result.warnings:
        print(f"  {warning.severity}: {warning.message}")


def save_results(result, output_dir) -> Path:
    """Save compilation artifacts, one directory per source file."""
    out = Path(output_dir)
    for source in result:
        source_dir = out / Path(source).with_suffix("")
        source_dir.mkdir(parents=True, exist_ok=True)
        for name, contract in result[source].items():
            runtime = f"0x{contract.deployed_bytecode}" if contract.deployed_bytecode else ""
            creation = f"0x{contract.bytecode}" if contract.bytecode else ""
            (source_dir / f"{name}_runtime.bin").write_text(runtime)
            (source_dir / f"{name}_creation.bin").write_text(creation)
            (source_dir / f"{name}_abi.json").write_text(json.dumps(contract.abi or [], indent=2))
            artifact = {
                "source": source,
                "contract": name,
                "runtime_bytecode": runtime,
                "creation_bytecode": creation,
                "abi": contract.abi or [],
                "runtime_size_bytes": contract.runtime_size,
                "creation_size_bytes": contract.creation_size,
            }
            (source_dir / f"{name}_artifact.json").write_text(json.dumps(artifact, indent=2))

    print(f"Artifacts saved to: {out.resolve()}")
    return out


# ────────────────────────────────────────────
# Main
# ────────────────────────────────────────────

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Compile all Solidity contracts in a directory")
    parser.add_argument("source_dir", nargs="?", help="Directory containing .sol files")
    parser.add_argument("--contract", default=None, help="Only report this contract")
    parser.add_argument("--solc-version", default=None, help="Solidity compiler version (default: latest release)")
    parser.add_argument("--solc", default=None, help="Use this solc executable instead of a managed one")
    parser.add_argument("--evm", default=None, help="EVM version (default: solc's own default)")
    parser.add_argument("--no-optimize", action="store_true", help="Disable optimizer")
    parser.add_argument("--runs", type=int, default=config.DEFAULT_OPTIMIZER_RUNS,
                        help=f"Optimizer runs (default: {config.DEFAULT_OPTIMIZER_RUNS})")
    parser.add_argument("--via-ir", action="store_true", help="Compile through the Yul IR pipeline")
    parser.add_argument("--cache-dir", default=None, help="Directory for downloaded solc binaries")
    parser.add_argument("--output", default=None, help="Write artifacts into this directory")
    parser.add_argument("--clean-cache", action="store_true", help="Delete downloaded solc binaries and exit")
    parser.add_argument("--verbose", action="store_true", help="Log resolution, downloads and cache activity")
    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    cache_dir = Path(args.cache_dir).expanduser() if args.cache_dir else None
    if args.clean_cache:
        cache_dir = cache_dir or config.default_cache_root()
        if cache_dir.exists():
            shutil.rmtree(cache_dir)
            print(f"Solc cache cleared: {cache_dir}")
        return 0

    if not args.source_dir:
        parser.error("source_dir is required")

    options = [with_optimizer(Optimizer(enabled=not args.no_optimize, runs=args.runs))]
    if args.evm:
        options.append(with_evm_version(args.evm))
    if args.via_ir:
        options.append(with_via_ir())

    print("\n" + "=" * 60)
    print("  Solidity Compiler")
    print("=" * 60)
    print(f"\n  Sources:   {args.source_dir}")
    print(f"  Solidity:  {args.solc_version or 'latest'}")
    print(f"  EVM:       {args.evm or 'default'}")
    print(f"  Optimize:  {not args.no_optimize} (runs={args.runs})")
    print()

    try:
        with Compiler(args.solc_version or LATEST, cache_dir, executable=args.solc) as compiler:
            print(f"  Using solc {compiler.version} at {compiler.executable}\n")
            result = compiler.compile(args.source_dir, args.contract or "", OUTPUT_SELECTION, *options)
    except CompilationError as e:
        print("\nCompilation failed:")
        for diagnostic in e.diagnostics:
            print(diagnostic.formatted_message or f"{diagnostic.severity}: {diagnostic.message}")
        return 1
    except SolcError as e:
        print(f"\nFAILED ({e.phase}): {e.message}")
        return 1

    print_results(result, args.contract)
    if args.output:
        save_results(result, args.output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
