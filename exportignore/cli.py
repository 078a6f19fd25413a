"""
Command line interface for export-ignore

Commands:
- check: report which paths a recursive export would skip
- rules: show the parsed rules of one directory's rule file
"""

import argparse
import os
import sys
from pathlib import Path
from typing import List, Optional

from exportignore import __version__
from exportignore.ignore import IgnoreConfig, IgnoreFileLoader, IgnoreManager
from exportignore.utils import configure_logging, get_logger

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser"""
    parser = argparse.ArgumentParser(
        prog='exportignore',
        description='Hierarchical .gitignore-compatible exclusion checks',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  exportignore check build/app.log         # Is this path excluded?
  exportignore check -v --root repo a b    # Show the deciding rule per path
  exportignore rules repo/sub              # Show parsed rules of repo/sub

Environment Variables:
  EXPORTIGNORE_FILENAME        Rule filename (default .gitignore)
  EXPORTIGNORE_LOG_LEVEL       TRACE, DEBUG, INFO, WARNING, ERROR
  EXPORTIGNORE_LOG_FORMAT      Set to "json" for structured logs
"""
    )
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    parser.add_argument('--log-level', help='Log level (default: EXPORTIGNORE_LOG_LEVEL or WARNING)')
    parser.add_argument('--log-file', help='Also write logs to this file')
    parser.add_argument('--ignore-file', metavar='NAME',
                        help='Rule filename to look for in each directory')

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    check_parser = subparsers.add_parser('check', help='Check whether paths are excluded')
    check_parser.add_argument('paths', nargs='+', metavar='PATH', help='Paths to check')
    check_parser.add_argument('--root', default='.',
                              help='Root directory of the export (default: current directory)')
    check_parser.add_argument('--explicit', action='append', default=[], metavar='PATH',
                              help='Explicitly selected file, always included (repeatable)')
    check_parser.add_argument('-v', '--verbose', action='store_true',
                              help='Show the rule that decided each path')
    check_parser.add_argument('-n', '--non-matching', action='store_true',
                              help='Also print paths that are not excluded')
    check_parser.add_argument('--dir', action='store_true',
                              help='Treat every PATH as a directory instead of checking the disk')

    rules_parser = subparsers.add_parser('rules', help="Show the parsed rules of a directory's rule file")
    rules_parser.add_argument('directory', metavar='DIR', help='Directory holding the rule file')

    return parser


def _config(args: argparse.Namespace) -> IgnoreConfig:
    if args.ignore_file:
        return IgnoreConfig.from_env(ignore_filename=args.ignore_file)
    return IgnoreConfig.from_env()


def cmd_check(args: argparse.Namespace, config: IgnoreConfig) -> int:
    """Handle check command"""
    root = Path(os.path.abspath(args.root))
    if not root.is_dir():
        print(f"Error: root is not a directory: {args.root}", file=sys.stderr)
        return 2

    manager = IgnoreManager(
        root,
        explicit_paths=[os.path.abspath(p) for p in args.explicit],
        config=config,
    )
    is_directory = True if args.dir else None

    any_excluded = False
    for raw_path in args.paths:
        detail = manager.explain(os.path.abspath(raw_path), is_directory=is_directory)
        excluded = detail.should_ignore
        any_excluded = any_excluded or excluded

        if not (excluded or args.non_matching):
            continue
        if args.verbose:
            print(f"{detail.describe() or '::'}\t{raw_path}")
        else:
            print(raw_path)

    return 0 if any_excluded else 1


def cmd_rules(args: argparse.Namespace, config: IgnoreConfig) -> int:
    """Handle rules command"""
    loader = IgnoreFileLoader(config)
    rule_path = loader.rule_file_path(Path(os.path.abspath(args.directory)))
    if not rule_path.is_file():
        print(f"No {config.ignore_filename} in {args.directory}", file=sys.stderr)
        return 1

    rule_file = loader.load_file(rule_path)
    print(f"{rule_path} ({len(rule_file.rules)} rules)")

    for rule in rule_file.rules:
        flags = [
            name for name, enabled in (
                ('negated', rule.negated),
                ('rooted', rule.rooted),
                ('dir-only', rule.dir_only),
                ('literal', rule.literal),
            ) if enabled
        ]
        suffix = f"  [{', '.join(flags)}]" if flags else ""
        print(f"{rule.line_number:>4}: {rule.original_text}{suffix}")

    for issue in rule_file.errors:
        print(f"error: line {issue.line}: {issue.message}")
    for issue in rule_file.warnings:
        print(f"warning: line {issue.line}: {issue.pattern}: {issue.message}")

    return 0


COMMANDS = {
    'check': cmd_check,
    'rules': cmd_rules,
}


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point"""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 2

    configure_logging(log_level=args.log_level, log_file=args.log_file)

    try:
        config = _config(args)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    logger.debug(f"Running command: {args.command}")
    return COMMANDS[args.command](args, config)


if __name__ == '__main__':
    sys.exit(main())
