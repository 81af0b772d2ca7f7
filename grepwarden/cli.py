"""
Command-line interface for grepwarden.

Runs scans, prints the findings, and applies suppressions from the
terminal.
"""

import argparse
import asyncio
import os
import sys
from typing import Optional, List

from rich.console import Console
from rich.text import Text
from rich.tree import Tree

from grepwarden import __version__
from grepwarden.config import (
    GrepwardenConfig, load_grepwarden_config, find_config, create_default_config,
)
from grepwarden.core.coordinator import ScanCoordinator
from grepwarden.core.findings import Severity
from grepwarden.core.rules import RuleCatalog
from grepwarden.errors import GrepwardenError, SuppressionError, UnsupportedLanguage
from grepwarden.formatters import get_formatter
from grepwarden.suppression import SuppressionResult
from grepwarden.suppression.languages import supported_languages
from grepwarden.utils import find_project_root
from grepwarden.utils.logger import setup_logging


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="grepwarden",
        description="Run OpenGrep over a project, report findings and manage suppressions.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  grepwarden scan                              # Scan the current project
  grepwarden scan app.py                       # Scan a single file
  grepwarden scan . --format sarif -o out      # SARIF output to file
  grepwarden scan . --severity ERROR           # Only ERROR findings
  grepwarden suppress line app.py 12 my-rule   # Suppress on line 12
  grepwarden suppress global my-rule           # Exclude a rule project-wide
  grepwarden list-rules                        # Show installed rules
  grepwarden init                              # Create config file
        """
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-c", "--config",
        help="Path to configuration file",
    )
    parser.add_argument(
        "--root",
        help="Project root (default: scan target directory or current directory)",
    )
    parser.add_argument(
        "--binary",
        help="Path to the OpenGrep binary",
    )
    parser.add_argument(
        "--rules",
        help="Rules directory (relative to the project root or absolute)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Verbose output and debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Scan command
    scan_parser = subparsers.add_parser("scan", help="Scan a file or the whole project")
    scan_parser.add_argument(
        "target",
        nargs="?",
        default=".",
        help="File or project directory to scan (default: current directory)",
    )
    scan_parser.add_argument(
        "-f", "--format",
        choices=["text", "json", "sarif"],
        default="text",
        help="Output format (default: text)",
    )
    scan_parser.add_argument(
        "-o", "--output",
        help="Output file (default: stdout)",
    )
    scan_parser.add_argument(
        "-s", "--severity",
        type=str.upper,
        choices=[s.value for s in Severity],
        help="Minimum severity to report (default: from config, INFO)",
    )
    scan_parser.add_argument(
        "--no-color",
        action="store_true",
        help="Disable colored output",
    )

    # Suppress command
    suppress_parser = subparsers.add_parser("suppress", help="Suppress a finding")
    suppress_parser.add_argument(
        "--no-rescan",
        action="store_true",
        help="Do not rescan after writing the suppression",
    )
    scope_parsers = suppress_parser.add_subparsers(dest="scope", help="Suppression scope")

    line_parser = scope_parsers.add_parser("line", help="Suppress a rule on one line")
    line_parser.add_argument("file", help="Source file")
    line_parser.add_argument("line", type=int, help="Line number (1-based)")
    line_parser.add_argument("rule_id", help="Rule identifier")
    line_parser.add_argument("--language", help="Override the detected language")

    file_parser = scope_parsers.add_parser("file", help="Suppress a rule in a whole file")
    file_parser.add_argument("file", help="Source file")
    file_parser.add_argument("rule_id", help="Rule identifier")
    file_parser.add_argument("--language", help="Override the detected language")

    global_parser = scope_parsers.add_parser("global", help="Exclude a rule for the project")
    global_parser.add_argument("rule_id", help="Rule identifier")

    # List-rules command
    rules_parser = subparsers.add_parser("list-rules", help="List rules in the rules directory")
    rules_parser.add_argument(
        "--category",
        help="Only show one category",
    )

    # Init command
    init_parser = subparsers.add_parser("init", help="Create a configuration file")
    init_parser.add_argument(
        "-f", "--force",
        action="store_true",
        help="Overwrite existing config file",
    )

    # Version command
    subparsers.add_parser("scanner-version", help="Show the scanner binary version")

    return parser


def resolve_root(args: argparse.Namespace) -> str:
    """Project root for this invocation."""
    if args.root:
        return os.path.abspath(args.root)
    target = getattr(args, "target", None)
    if target and os.path.isdir(target):
        return os.path.abspath(target)
    return find_project_root(".")


def load_config_for(args: argparse.Namespace, root: str) -> GrepwardenConfig:
    """Load configuration and apply command-line overrides."""
    config = load_grepwarden_config(args.config, start_dir=root)

    if args.binary:
        config.binary_path = args.binary
    if args.rules:
        config.rules_path = args.rules
    if getattr(args, "severity", None):
        config.severity = args.severity

    setup_logging("DEBUG" if args.verbose else config.log_level, config.log_file)
    return config


def cmd_scan(args: argparse.Namespace) -> int:
    """Execute the scan command."""
    root = resolve_root(args)
    config = load_config_for(args, root)
    coordinator = ScanCoordinator.from_config(config, root)

    if os.path.isfile(args.target):
        asyncio.run(coordinator.scan_file(os.path.abspath(args.target)))
    else:
        asyncio.run(coordinator.scan_workspace())

    report = coordinator.report()

    formatter = get_formatter(args.format)
    if hasattr(formatter, "verbose"):
        formatter.verbose = args.verbose
    if hasattr(formatter, "use_color"):
        formatter.use_color = formatter.use_color and not args.no_color and not args.output

    output = formatter.format_result(report)

    if args.output:
        with open(args.output, "w", encoding="utf-8") as f:
            f.write(output)
        if args.format == "text":
            print(f"Results written to {args.output}")
    else:
        print(output)

    return 1 if report.error_count > 0 else 0


def cmd_suppress(args: argparse.Namespace) -> int:
    """Execute the suppress command."""
    if args.scope is None:
        print("Choose a scope: line, file or global.", file=sys.stderr)
        return 1

    root = resolve_root(args)
    config = load_config_for(args, root)
    coordinator = ScanCoordinator.from_config(config, root)
    rescan = not args.no_rescan

    try:
        if args.scope == "line":
            if args.line < 1:
                print("Line numbers start at 1.", file=sys.stderr)
                return 1
            result = asyncio.run(coordinator.suppress_line(
                os.path.abspath(args.file), args.line - 1, args.rule_id, language=args.language, rescan=rescan,
            ))
            target = f"{args.file}:{args.line}"
        elif args.scope == "file":
            result = asyncio.run(coordinator.suppress_file(
                os.path.abspath(args.file), args.rule_id, language=args.language, rescan=rescan,
            ))
            target = args.file
        else:
            result = asyncio.run(coordinator.suppress_globally(args.rule_id, rescan=rescan))
            target = config.exclusion_config
    except SuppressionError as e:
        print(f"Error: {e}", file=sys.stderr)
        if isinstance(e, UnsupportedLanguage):
            print(f"Supported languages: {', '.join(supported_languages())}", file=sys.stderr)
        return 1

    if result is SuppressionResult.ALREADY_SUPPRESSED:
        print(f"{args.rule_id} is already suppressed in {target}")
    else:
        print(f"Suppressed {args.rule_id} in {target}")
        if rescan:
            remaining = coordinator.store.count(config.min_severity)
            print(f"{remaining} findings remaining after rescan")

    return 0


def cmd_list_rules(args: argparse.Namespace) -> int:
    """Execute the list-rules command."""
    root = resolve_root(args)
    config = load_config_for(args, root)
    rules_root = config.rules_path if os.path.isabs(config.rules_path) else os.path.join(root, config.rules_path)

    if not RuleCatalog.has_rules(rules_root):
        print(f"No OpenGrep rules found at {rules_root}")
        return 1

    catalog = RuleCatalog.load(rules_root)
    categories = [args.category] if args.category else catalog.categories()

    tree = Tree(Text(f"Rules in {rules_root}"))
    for category in categories:
        rules = catalog.rules_in(category)
        if not rules:
            continue
        branch = tree.add(Text(f"{category} ({len(rules)})"))
        for rule in rules:
            branch.add(Text(str(rule)))

    Console().print(tree)
    print(f"\nTotal: {catalog.count} rules")
    return 0


def cmd_init(args: argparse.Namespace) -> int:
    """Execute the init command."""
    config_file = ".grepwarden.yaml"

    if os.path.exists(config_file) and not args.force:
        print(f"Configuration file {config_file} already exists.")
        print("Use --force to overwrite.")
        return 1

    existing = find_config(".")
    if existing and os.path.abspath(existing) != os.path.abspath(config_file):
        print(f"Note: another configuration is in use: {existing}")

    with open(config_file, "w", encoding="utf-8") as f:
        f.write(create_default_config())

    print(f"Created configuration file: {config_file}")
    return 0


def cmd_scanner_version(args: argparse.Namespace) -> int:
    """Execute the scanner-version command."""
    root = resolve_root(args)
    config = load_config_for(args, root)
    coordinator = ScanCoordinator.from_config(config, root)

    version = asyncio.run(coordinator.invoker.version())
    if version is None:
        print("OpenGrep CLI not found.", file=sys.stderr)
        return 1

    print(version)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    try:
        if args.command == "scan":
            return cmd_scan(args)
        elif args.command == "suppress":
            return cmd_suppress(args)
        elif args.command == "list-rules":
            return cmd_list_rules(args)
        elif args.command == "init":
            return cmd_init(args)
        elif args.command == "scanner-version":
            return cmd_scanner_version(args)
        else:
            parser.print_help()
            return 0

    except KeyboardInterrupt:
        print("\nInterrupted.")
        return 130
    except GrepwardenError as e:
        print(f"Error: {e}", file=sys.stderr)
        if os.environ.get("DEBUG"):
            raise
        return 1


if __name__ == "__main__":
    sys.exit(main())
