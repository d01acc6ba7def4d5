"""
Command-line interface.

Usage:
    merkle-drop build [--feed CSV] [--out-dir DIR] [--encoding standard|packed]
    merkle-drop root [--tree FILE]
    merkle-drop proof <address> [--tree FILE]
    merkle-drop verify <address> <amount> [--tree FILE] [--root HEX] [--proof HEX ...]
    merkle-drop serve [--host HOST] [--port PORT]

Environment Variables:
    MERKLE_DROP_FEED_FILE       CSV feed (default: feed-files/addresses.csv)
    MERKLE_DROP_TREE_FILE       Tree dump (default: feed-files/tree.json)
    MERKLE_DROP_LEAF_ENCODING   standard or packed (default: standard)
    MERKLE_DROP_LOG_LEVEL       Log level (default: INFO)
"""

import argparse
import json
import logging
import sys
from argparse import Namespace
from pathlib import Path
from typing import Sequence

from eth_utils import encode_hex

from . import __version__
from .airdrop import Airdrop
from .config import get_settings
from .errors import EncodingError, MalformedTreeError, MerkleDropError
from .ingestion import read_entries
from .logging_config import setup_logging
from .output import OutputPaths, write_outputs

logger = logging.getLogger("merkle_drop.cli")

# Exit codes
EXIT_SUCCESS = 0
EXIT_RUNTIME_ERROR = 1
EXIT_VERIFICATION_FAILED = 2


def _print_json(data) -> None:
    print(json.dumps(data, indent=2))


def _load(args: Namespace) -> Airdrop:
    return Airdrop.load(args.tree or get_settings().tree_file)


def build_cmd(args: Namespace) -> int:
    """Read the feed, build the tree and write all output files."""
    settings = get_settings()
    feed = args.feed or settings.feed_file
    encoding = args.encoding or settings.leaf_encoding

    entries = read_entries(feed)
    airdrop = Airdrop.from_entries(entries, encoding=encoding)

    paths = (
        OutputPaths.in_directory(args.out_dir, settings)
        if args.out_dir
        else OutputPaths.from_settings(settings)
    )
    write_outputs(airdrop, paths, settings)

    print(f"Merkle Root: {airdrop.root_hex}")
    return EXIT_SUCCESS


def root_cmd(args: Namespace) -> int:
    """Print the root of a tree dump."""
    print(_load(args).root_hex)
    return EXIT_SUCCESS


def proof_cmd(args: Namespace) -> int:
    """Print claim data and proof for one address."""
    airdrop = _load(args)
    try:
        entry = airdrop.entry_for(args.address)
    except KeyError as e:
        logger.error(str(e.args[0]))
        return EXIT_RUNTIME_ERROR

    proof = airdrop.proof_for(args.address)
    _print_json(
        {
            "address": entry.address,
            "amount": str(entry.amount),
            "leaf": encode_hex(proof.leaf),
            "proof": proof.hex_siblings,
        }
    )
    return EXIT_SUCCESS


def verify_cmd(args: Namespace) -> int:
    """Verify a claim against a root."""
    airdrop = _load(args)
    is_valid = airdrop.verify_claim(args.address, args.amount, proof=args.proof, root=args.root)

    print(f"Valid proof: {is_valid}")
    return EXIT_SUCCESS if is_valid else EXIT_VERIFICATION_FAILED


def serve_cmd(args: Namespace) -> int:
    """Run the proof service."""
    from .main import main as serve

    serve(host=args.host, port=args.port)
    return EXIT_SUCCESS


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser with all subcommands."""
    parser = argparse.ArgumentParser(
        prog="merkle-drop",
        description="Build airdrop Merkle trees, print proofs and verify claims.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (overrides MERKLE_DROP_LOG_LEVEL)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # --- build command ---
    build_parser = subparsers.add_parser(
        "build",
        help="Build the tree from a CSV feed",
        description="Write the distribution, claim and tree files for a feed.",
    )
    build_parser.add_argument("--feed", type=Path, default=None, help="CSV feed file")
    build_parser.add_argument(
        "--out-dir", type=Path, default=None, help="Directory for the output files"
    )
    build_parser.add_argument(
        "--encoding",
        choices=["standard", "packed"],
        default=None,
        help="Leaf encoding (default: from settings)",
    )
    build_parser.set_defaults(func=build_cmd)

    tree_help = "Tree dump written by build (default: from settings)"

    # --- root command ---
    root_parser = subparsers.add_parser("root", help="Print the Merkle root of a tree dump")
    root_parser.add_argument("--tree", type=Path, default=None, help=tree_help)
    root_parser.set_defaults(func=root_cmd)

    # --- proof command ---
    proof_parser = subparsers.add_parser("proof", help="Print the proof for an address")
    proof_parser.add_argument("address", type=str, help="Claimant address")
    proof_parser.add_argument("--tree", type=Path, default=None, help=tree_help)
    proof_parser.set_defaults(func=proof_cmd)

    # --- verify command ---
    verify_parser = subparsers.add_parser("verify", help="Verify a claim")
    verify_parser.add_argument("address", type=str, help="Claimant address")
    verify_parser.add_argument("amount", type=str, help="Claimed amount")
    verify_parser.add_argument("--tree", type=Path, default=None, help=tree_help)
    verify_parser.add_argument(
        "--root", type=str, default=None, help="Root to verify against (default: the dump's)"
    )
    verify_parser.add_argument(
        "--proof",
        type=str,
        nargs="*",
        default=None,
        help="Sibling digests (default: the proof issued for the address)",
    )
    verify_parser.set_defaults(func=verify_cmd)

    # --- serve command ---
    serve_parser = subparsers.add_parser("serve", help="Run the HTTP proof service")
    serve_parser.add_argument("--host", type=str, default=None)
    serve_parser.add_argument("--port", type=int, default=None)
    serve_parser.set_defaults(func=serve_cmd)

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """CLI entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    setup_logging(args.log_level or get_settings().log_level)

    if not getattr(args, "func", None):
        parser.print_help()
        return EXIT_RUNTIME_ERROR

    try:
        return args.func(args)
    except EncodingError as e:
        logger.error(f"Invalid input, nothing written: {e}")
    except MalformedTreeError as e:
        logger.error(f"Invalid tree dump: {e}")
    except FileNotFoundError as e:
        logger.error(f"File not found: {e.filename}")
    except OSError as e:
        logger.error(f"Cannot access {e.filename}: {e.strerror}")
    except UnicodeDecodeError as e:
        logger.error(f"Input is not UTF-8 text: {e}")
    except MerkleDropError as e:
        logger.error(str(e))
    return EXIT_RUNTIME_ERROR


if __name__ == "__main__":
    sys.exit(main())
