"""
mintgate CLI.

Commands:
    mintgate root <file>                      Allowlist Merkle root for a file of identities
    mintgate proof <file> <identity>          Inclusion proof for one identity
    mintgate verify <identity> --root R [--proof P ...]
                                              Check a proof against a root
    mintgate config                           Show the resolved configuration

Identity files hold one identity per line; blank lines and lines starting
with '#' are ignored.
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, List, Optional

from mintgate.core.settings import MintGateSettings
from mintgate.merkle.tree import AllowlistTree, verify_membership
from mintgate.utils.logging import configure_logging


def _read_identities(path: str) -> List[str]:
    lines = Path(path).read_text(encoding="utf-8").splitlines()
    return [ln.strip() for ln in lines if ln.strip() and not ln.strip().startswith("#")]


def _print_output(data: Any, output_format: str) -> None:
    if output_format == "json":
        print(json.dumps(data, indent=2, sort_keys=True))
        return
    if isinstance(data, dict):
        for key, value in data.items():
            if isinstance(value, list):
                print(f"{key}:")
                for item in value:
                    print(f"  {item}")
            else:
                print(f"{key}: {value}")
    else:
        print(data)


def cmd_root(args) -> int:
    identities = _read_identities(args.file)
    if not identities:
        print(f"Error: no identities in {args.file}", file=sys.stderr)
        return 1
    tree = AllowlistTree(identities)
    _print_output({"root": tree.root_hex, "leaves": tree.leaf_count}, args.output)
    return 0


def cmd_proof(args) -> int:
    identities = _read_identities(args.file)
    if not identities:
        print(f"Error: no identities in {args.file}", file=sys.stderr)
        return 1
    tree = AllowlistTree(identities)
    try:
        proof = tree.proof_for(args.identity)
    except KeyError:
        print(f"Error: {args.identity} is not in {args.file}", file=sys.stderr)
        return 1
    _print_output(proof.to_dict(), args.output)
    return 0


def cmd_verify(args) -> int:
    ok = verify_membership(args.identity, args.proof or [], args.root)
    _print_output({"identity": args.identity, "valid": ok}, args.output)
    return 0 if ok else 1


def cmd_config(args) -> int:
    settings = MintGateSettings()
    _print_output(settings.model_dump(), "json")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="mintgate", description="mintgate allowlist and configuration tools")
    parser.add_argument("--log-level", default=None, help="Override MINTGATE_LOG_LEVEL")
    sub = parser.add_subparsers(dest="command", required=True)

    p_root = sub.add_parser("root", help="Compute the allowlist Merkle root")
    p_root.add_argument("file")
    p_root.add_argument("--output", choices=["table", "json"], default="table")
    p_root.set_defaults(func=cmd_root)

    p_proof = sub.add_parser("proof", help="Produce an inclusion proof for one identity")
    p_proof.add_argument("file")
    p_proof.add_argument("identity")
    p_proof.add_argument("--output", choices=["table", "json"], default="table")
    p_proof.set_defaults(func=cmd_proof)

    p_verify = sub.add_parser("verify", help="Verify an inclusion proof against a root")
    p_verify.add_argument("identity")
    p_verify.add_argument("--root", required=True)
    p_verify.add_argument("--proof", action="append", help="Sibling hash; repeat in leaf-to-root order")
    p_verify.add_argument("--output", choices=["table", "json"], default="table")
    p_verify.set_defaults(func=cmd_verify)

    p_config = sub.add_parser("config", help="Show resolved configuration")
    p_config.set_defaults(func=cmd_config)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level or MintGateSettings().runtime.log_level)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
