#!/usr/bin/env python3
# Copyright 2026 wRPC Contributors
# SPDX-License-Identifier: Apache-2.0

"""Run the CI pipeline locally.

Each step is a command run through ``uv`` from the repository root. Steps can
be narrowed with ``--only`` or ``--skip``; the summary lists every step that
ran, and the exit code is non-zero if any of them failed.
"""

import argparse
import pathlib
import subprocess
import sys
import time

from yachalk import chalk

# ###############
# Public Interface
# ###############

STEPS: dict[str, list[str]] = {
    "format": ["uv", "run", "ruff", "format", "--check", "src/", "tests/", "tools/"],
    "lint": ["uv", "run", "ruff", "check", "src/", "tests/", "tools/"],
    "types": ["uv", "run", "ty", "check", "src/"],
    "tests": ["uv", "run", "pytest", "--cov=wrpc", "--cov-report=term-missing"],
    # The accepted example files must pass the installed command-line tool as well.
    "smoke": ["uv", "run", "wrpc", "check", "tests/data/positive"],
    "build": ["uv", "build"],
}


def main(argv: list[str] | None = None) -> int:
    """Run the selected CI steps and return the process exit code."""
    args = _parse_args(argv)
    selected = [name for name in STEPS if name in (args.only or STEPS) and name not in args.skip]

    results: list[tuple[str, bool, float]] = []
    for name in selected:
        _banner(name)
        start = time.monotonic()
        proc = subprocess.run(STEPS[name], cwd=_repo_root())
        results.append((name, proc.returncode == 0, time.monotonic() - start))
        if proc.returncode != 0 and args.fail_fast:
            break

    _banner("summary")
    for name, passed, elapsed in results:
        colorize = chalk.green if passed else chalk.red
        print(colorize(f"  {'PASS' if passed else 'FAIL'}  {name} ({elapsed:.1f}s)"))
    print()
    return 0 if all(passed for _, passed, _ in results) else 1


# ################
# Implementation
# ################


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the wRPC CI steps locally.")
    parser.add_argument("--only", nargs="+", choices=list(STEPS), help="Run only these steps")
    parser.add_argument("--skip", nargs="+", choices=list(STEPS), default=[], help="Skip these steps")
    parser.add_argument("--fail-fast", action="store_true", help="Stop at the first failing step")
    return parser.parse_args(argv)


def _banner(title: str) -> None:
    sep = chalk.blue("=" * 60)
    print(f"\n{sep}\n{chalk.blue(title.capitalize())}\n{sep}")


def _repo_root() -> pathlib.Path:
    return pathlib.Path(__file__).parent.parent


if __name__ == "__main__":
    sys.exit(main())
