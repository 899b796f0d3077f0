# Copyright 2026 wRPC Contributors
# SPDX-License-Identifier: Apache-2.0

"""Entry point for the wRPC command-line interface."""

import argparse
import logging
import sys
from pathlib import Path

from wrpc.compiler.artifact import serialize
from wrpc.compiler.build import compile_file, compile_files, write_artifacts
from wrpc.compiler.errors import CanonicalizeError
from wrpc.errors import CompileError
from wrpc.parser.errors import ParseError
from wrpc.reporting.report import Report, TextBlock, render_report
from wrpc.workspace.config import (
    CONFIG_FILE_NAME,
    WorkspaceConfig,
    WorkspaceConfigError,
    discover_sources,
    load_project,
)

# ###############
# Public Interface
# ###############


def main() -> None:
    """Run the wRPC CLI."""
    parser = argparse.ArgumentParser(
        prog="wrpc",
        description="wRPC - interface definition compiler",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log the progress of each compilation stage",
    )
    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")

    # init subcommand
    init_parser = subparsers.add_parser(
        "init",
        help="Initialize a new wRPC project",
        description=f"Create a {CONFIG_FILE_NAME} project file with the default settings.",
    )
    init_parser.add_argument(
        "directory",
        nargs="?",
        default=".",
        help="Directory to initialize the project in (default: current directory)",
    )

    # check subcommand
    check_parser = subparsers.add_parser(
        "check",
        help="Check all .wrpc files of a project",
        description="Compile every configured source file and report all errors.",
    )
    check_parser.add_argument(
        "directory",
        nargs="?",
        default=".",
        help="Directory containing the wRPC project (default: current directory)",
    )

    # build subcommand
    build_parser = subparsers.add_parser(
        "build",
        help="Compile a project and write canonical module artifacts",
        description="Compile every configured source file and write one JSON artifact per file.",
    )
    build_parser.add_argument(
        "directory",
        nargs="?",
        default=".",
        help="Directory containing the wRPC project (default: current directory)",
    )

    # parse subcommand
    parse_parser = subparsers.add_parser(
        "parse",
        help="Compile a single file and print the result",
        description="Compile one .wrpc file and print a summary or the canonical module.",
    )
    parse_parser.add_argument("file", help="Path to the .wrpc file")
    parse_parser.add_argument(
        "--json",
        action="store_true",
        help="Print the canonical module as JSON",
    )

    args = parser.parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    if args.command is None:
        parser.print_help()
        sys.exit(0)

    sys.exit(_dispatch(args))


# ################
# Implementation
# ################

_CONFIG_TEMPLATE = (
    "# wRPC project configuration\n"
    "sources:\n"
    '  - "**/*.wrpc"\n'
    "build-directory: build\n"
    "color: true\n"
)


def _dispatch(args: argparse.Namespace) -> int:
    """Dispatch to the appropriate subcommand handler."""
    if args.command == "init":
        return _cmd_init(args)
    if args.command == "check":
        return _cmd_check(args)
    if args.command == "build":
        return _cmd_build(args)
    if args.command == "parse":
        return _cmd_parse(args)
    return 0


def _cmd_init(args: argparse.Namespace) -> int:
    """Handle the init subcommand."""
    directory = Path(args.directory).resolve()

    if not directory.exists():
        print(f"Error: directory '{directory}' does not exist.", file=sys.stderr)
        return 1

    config_file = directory / CONFIG_FILE_NAME
    if config_file.exists():
        print(f"Error: project file already exists at '{config_file}'.", file=sys.stderr)
        return 1

    config_file.write_text(_CONFIG_TEMPLATE, encoding="utf-8")
    print(f"Initialized wRPC project at '{config_file}'.")
    return 0


def _cmd_check(args: argparse.Namespace) -> int:
    """Handle the check subcommand."""
    loaded = _load(args.directory)
    if loaded is None:
        return 1
    directory, config = loaded

    files = discover_sources(directory, config)
    if not files:
        print("No .wrpc files found in the project.")
        return 0

    print(f"Checking {len(files)} file(s)...")
    _, failures = compile_files(files)
    if failures:
        _print_failures(failures, config.color)
        return 1

    print("No issues found.")
    return 0


def _cmd_build(args: argparse.Namespace) -> int:
    """Handle the build subcommand."""
    loaded = _load(args.directory)
    if loaded is None:
        return 1
    directory, config = loaded

    files = discover_sources(directory, config)
    if not files:
        print("No .wrpc files found in the project.")
        return 0

    modules, failures = compile_files(files)
    if failures:
        _print_failures(failures, config.color)
        return 1

    try:
        written = write_artifacts(modules, directory, directory / config.build_directory)
    except (CompileError, OSError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    print(f"Wrote {len(written)} artifact(s) to '{directory / config.build_directory}'.")
    return 0


def _cmd_parse(args: argparse.Namespace) -> int:
    """Handle the parse subcommand."""
    path = Path(args.file)
    if not path.is_file():
        print(f"Error: file '{path}' does not exist.", file=sys.stderr)
        return 1

    try:
        module = compile_file(path)
    except CompileError as exc:
        _print_failures({path: exc}, color=sys.stderr.isatty())
        return 1

    if args.json:
        print(serialize(module, indent=2))
        return 0

    for record in module.get_sorted_records():
        order = ", ".join(record.property_validation_order)
        print(f"data {record.name}: {len(record.properties)} propert(y/ies), validation order [{order}]")
    for enum in module.get_sorted_enums():
        shape = "simple" if enum.is_simple else "sealed"
        print(f"enum {enum.name}: {len(enum.variants)} variant(s), {shape}")
    for service in module.get_sorted_services():
        print(f"service {service.name}: {len(service.methods)} method(s)")
    return 0


def _load(directory_arg: str) -> tuple[Path, WorkspaceConfig] | None:
    """Resolve the project directory and load its configuration, printing any error."""
    directory = Path(directory_arg).resolve()
    if not directory.exists():
        print(f"Error: directory '{directory}' does not exist.", file=sys.stderr)
        return None
    try:
        return directory, load_project(directory)
    except WorkspaceConfigError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return None


def _print_failures(failures: dict[Path, CompileError], color: bool) -> None:
    """Render every error of every failed file to stderr."""
    count = 0
    for path, exc in failures.items():
        # Only syntax and canonicalization errors point into a source that was read.
        source = path.read_text(encoding="utf-8") if isinstance(exc, (ParseError, CanonicalizeError)) else ""
        for report in _reports(exc):
            print(render_report(report, source, color=color), file=sys.stderr)
            print(file=sys.stderr)
            count += 1
    print(f"Found {count} error(s) in {len(failures)} file(s).", file=sys.stderr)


def _reports(exc: CompileError) -> list[Report]:
    if isinstance(exc, ParseError):
        return [error.to_report(exc.filename) for error in exc.errors]
    if isinstance(exc, CanonicalizeError):
        return [error.to_report(exc.filename) for error in exc.errors]
    return [Report(title="COMPILE ERROR", blocks=[TextBlock(text=str(exc))], filename=exc.filename)]
