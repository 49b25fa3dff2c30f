# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
CLI entrypoint for coderunner.

Every operation is a subcommand of `coderunner`. The global options
(--config, --log-level, --seed) are inherited by every subcommand through
argparse's parent parser mechanism.

Usage:
    coderunner run --code 'return x + y' --var x=10 --var y=20
    coderunner run --file snippet.py --config configs/coderunner.yaml
    coderunner demo
    coderunner info
"""

import argparse
import sys

from coderunner.cli.commands import handle_demo, handle_info, handle_run
from coderunner.cli.exit_codes import USER_ERROR


def _build_global_parser() -> argparse.ArgumentParser:
    """Options every subcommand accepts. add_help=False keeps -h owned by the subcommand."""
    parent = argparse.ArgumentParser(add_help=False)
    parent.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to YAML configuration file.",
    )
    parent.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        dest="log_level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Set the logging verbosity level.",
    )
    parent.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Seed Python's random module before running (takes precedence over config).",
    )
    return parent


def _register_subcommands(
    subparsers: argparse._SubParsersAction,  # type: ignore[type-arg]
    parent: argparse.ArgumentParser,
) -> None:
    """Register all subcommands with their handler functions."""
    commands = [
        ("run", "Compile and run a code fragment.", handle_run),
        ("demo", "Run the built-in example fragments.", handle_demo),
        ("info", "Display environment and config info.", handle_info),
    ]

    for name, help_text, handler in commands:
        parser = subparsers.add_parser(name, parents=[parent], help=help_text)
        parser.set_defaults(func=handler)

    run_parser = subparsers.choices["run"]
    source = run_parser.add_mutually_exclusive_group(required=True)
    source.add_argument(
        "--code",
        type=str,
        default=None,
        help="The code fragment to run.",
    )
    source.add_argument(
        "--file",
        type=str,
        default=None,
        help="Path to a file holding the code fragment.",
    )
    run_parser.add_argument(
        "--var",
        action="append",
        default=None,
        metavar="KEY=VALUE",
        help="Bind a variable for the fragment; VALUE is read as YAML. Repeatable.",
    )


def main() -> None:
    """Parse the command line and exit with the handler's code (USER_ERROR without a subcommand)."""
    parent = _build_global_parser()

    root_parser = argparse.ArgumentParser(
        prog="coderunner",
        description="coderunner: compile and run Python code fragments with named variables.",
        parents=[parent],
    )
    subparsers = root_parser.add_subparsers(dest="command")
    _register_subcommands(subparsers, parent)

    args = root_parser.parse_args()

    if not hasattr(args, "func") or args.func is None:
        root_parser.print_help()
        sys.exit(USER_ERROR)

    exit_code = args.func(args)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
