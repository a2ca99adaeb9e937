#!/usr/bin/env python3
"""
FHIR-Connect navigation - command-line interface.

Jump between FHIR-Connect mapping documents the way an editor's
"go to declaration" does:
- goto: navigate from a clicked position in a mapping file
- candidates: list files referencing or declaring a symbol
- scan: list the YAML documents in the workspace
- keys: list navigable key paths

Usage:
    fhirconnect goto models/patient.model.yml 4 11        # Navigate from line 4, column 11
    fhirconnect goto models/patient.model.yml 4 11 --pick 2
    fhirconnect candidates models/patient.model.yml Patient
    fhirconnect candidates - Patient --category slotArchetype
    fhirconnect scan                                      # List workspace documents
    fhirconnect keys                                      # List navigable keys
    fhirconnect --help                                    # Show help
"""

import argparse
import logging
import sys
from pathlib import Path

from fhirconnect import __version__
from fhirconnect.commands.navigate import NavigateCommand
from fhirconnect.navigation.relationships import RelationshipCategory
from fhirconnect.utils.config import get_log_level, load_config
from fhirconnect.utils.repo import find_workspace_root


def _configure_logging(verbose: bool, level_name: str) -> None:
    """Send log records to stderr so they never mix with command output."""
    level = logging.DEBUG if verbose else getattr(logging, level_name, logging.WARNING)
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s", stream=sys.stderr)


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="FHIR-Connect navigation - jump between mapping references and declarations",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Navigate from a click position (one-based line and column)
  %(prog)s goto models/patient.model.yml 4 11      Go to declaration / usage
  %(prog)s goto models/patient.model.yml 4 11 --pick 2
                                                   Take the 2nd of several destinations
  %(prog)s goto ctx.context.yml 6 9 --format json  Machine-readable destination

  # Resolve a symbol directly
  %(prog)s candidates models/patient.model.yml Patient
                                                   Files using the Patient model
  %(prog)s candidates - Patient --category slotArchetype
                                                   File declaring Patient

  # Workspace inspection
  %(prog)s scan                                    List YAML documents
  %(prog)s keys                                    List navigable key paths

Categories:
  metadata.name  - clicked a declaration, find usages
  slotArchetype, archetypes, start, extends, extensions
                 - clicked a reference, find the declaration
        """
    )

    parser.add_argument(
        "--repo",
        type=str,
        metavar="PATH",
        help="Workspace root (default: auto-detect via .fhirconnect/ directory)"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Debug logging on stderr"
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}"
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # ----- fhirconnect goto FILE LINE COLUMN -----
    goto_parser = subparsers.add_parser(
        "goto",
        help="Navigate from a position in a mapping file",
        description="Classify the clicked key, resolve candidates and print the destination"
    )
    goto_parser.add_argument("file", type=str, help="File the click happened in")
    goto_parser.add_argument("line", type=int, help="One-based line")
    goto_parser.add_argument("column", type=int, help="One-based column")
    goto_parser.add_argument(
        "--pick",
        type=int,
        metavar="N",
        help="Choose the N-th destination when several qualify (default: prompt)"
    )
    goto_parser.add_argument(
        "--format", "-f",
        type=str,
        choices=["text", "json"],
        default="text",
        help="Output format (default: text)"
    )

    # ----- fhirconnect candidates FILE SYMBOL -----
    candidates_parser = subparsers.add_parser(
        "candidates",
        help="List files referencing or declaring a symbol",
        description="Resolve a symbol to candidate files and their anchors"
    )
    candidates_parser.add_argument(
        "file",
        type=str,
        help="Current file, excluded from results ('-' for none)"
    )
    candidates_parser.add_argument("symbol", type=str, help="Symbol to resolve")
    candidates_parser.add_argument(
        "--category", "-c",
        action="append",
        dest="categories",
        choices=[c.value for c in RelationshipCategory],
        help="Category of the click site, repeatable (default: metadata.name)"
    )
    candidates_parser.add_argument(
        "--format", "-f",
        type=str,
        choices=["text", "json"],
        default="text",
        help="Output format (default: text)"
    )

    # ----- fhirconnect scan -----
    scan_parser = subparsers.add_parser(
        "scan",
        help="List workspace YAML documents",
        description="List the documents the workspace scanner enumerates"
    )
    scan_parser.add_argument(
        "--format", "-f",
        type=str,
        choices=["text", "json"],
        default="text",
        help="Output format (default: text)"
    )

    # ----- fhirconnect keys -----
    subparsers.add_parser(
        "keys",
        help="List navigable key paths",
        description="Show the YAML key paths that support navigation"
    )

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    if args.repo:
        repo_root = Path(args.repo).resolve()
    elif args.command in ("goto", "candidates") and args.file != "-":
        repo_root = find_workspace_root(Path(args.file))
    else:
        repo_root = find_workspace_root()

    config = load_config(repo_root)
    _configure_logging(args.verbose, get_log_level(repo_root, config))
    cmd = NavigateCommand(repo_root=repo_root, config=config)

    if args.command == "goto":
        return cmd.goto(
            file=Path(args.file),
            line=args.line,
            column=args.column,
            pick=args.pick,
            format=args.format
        )
    elif args.command == "candidates":
        return cmd.candidates(
            file=None if args.file == "-" else Path(args.file),
            symbol=args.symbol,
            categories=args.categories,
            format=args.format
        )
    elif args.command == "scan":
        return cmd.scan(format=args.format)
    elif args.command == "keys":
        return cmd.keys()

    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
