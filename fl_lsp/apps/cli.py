"""
Command Line Interface module for fl-lsp.

This module provides the main entry point for the fl-lsp application: it either
runs the language server for an editor, or checks a single file once and prints
the issues found.
"""

import argparse
import asyncio
import json
import logging
import os
import sys
from typing import List, Optional

# Logging is configured in fl_lsp/__init__.py when imported
from ..analysis.engine import EngineClient, EngineOutcome
from ..lsp.server import create_server
from .display import print_outcome

# Configure logger for this module
logger = logging.getLogger(__name__)


class CLI:
    """
    Encapsulates the CLI application logic.

    This class is responsible for:
    - Parsing command-line arguments
    - Launching the language server over stdio or TCP
    - Running one-shot checks of a file
    """

    @classmethod
    def start(cls, argv: Optional[List[str]] = None) -> int:
        """
        Start the CLI application.

        Args:
            argv: Arguments to parse instead of sys.argv[1:]

        Returns:
            Process exit code
        """
        try:
            args = cls._parse_args(argv)

            if args.subcommand == "serve":
                server = create_server()
                if args.tcp:
                    logger.info(f"Starting language server on {args.host}:{args.port}")
                    server.start_tcp(args.host, args.port)
                else:
                    logger.info("Starting language server over stdio")
                    server.start_io()
                return 0

            elif args.subcommand == "check":
                return cls._check(args.file, args.json, args.executable)

        except KeyboardInterrupt:
            logger.info("Application interrupted by user")
            print("\nExiting fl-lsp...", file=sys.stderr)
            return 0

        except FileNotFoundError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 2

        except Exception as e:
            logger.critical(f"Unhandled exception: {e}", exc_info=True)
            print(f"\nError: {str(e)}", file=sys.stderr)
            return 2

        return 0

    @staticmethod
    def _check(path: str, as_json: bool, executable: Optional[str]) -> int:
        """Analyze one file and print its issues; returns 1 if any were found."""
        with open(path, "r", encoding="utf-8") as f:
            content = f.read()

        logger.info(f"Checking {path}")
        client = EngineClient(project_root=os.getcwd())
        outcome: EngineOutcome = asyncio.run(client.run(path, content, executable))

        if as_json:
            for issue in outcome.issues:
                print(json.dumps(issue.to_dict()))
        else:
            print_outcome(path, outcome)

        return 1 if outcome.issues else 0

    @staticmethod
    def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
        """
        Parse command-line arguments.

        Returns:
            Parsed argument namespace
        """
        parser = argparse.ArgumentParser(
            prog="fl-lsp",
            description="fl-lsp - cargo-fl diagnostics for editors",
            formatter_class=argparse.ArgumentDefaultsHelpFormatter,
        )

        # Create subparsers for different commands
        subparsers = parser.add_subparsers(
            dest="subcommand", help="Subcommand to run", required=True
        )

        # 1. Serve subcommand - run the language server
        serve_parser = subparsers.add_parser(
            "serve", help="Run the language server (stdio by default)"
        )
        serve_parser.add_argument(
            "--tcp", action="store_true", help="Listen on a TCP socket instead of stdio"
        )
        serve_parser.add_argument("--host", default="127.0.0.1", help="Host to bind with --tcp")
        serve_parser.add_argument("--port", type=int, default=2087, help="Port to bind with --tcp")

        # 2. Check subcommand - analyze one file and exit
        check_parser = subparsers.add_parser(
            "check", help="Analyze a single file and print the issues found"
        )
        check_parser.add_argument("file", help="Path to a Rust source file")
        check_parser.add_argument(
            "--json", action="store_true", help="Print one JSON issue per line"
        )
        check_parser.add_argument(
            "--executable",
            "-e",
            type=str,
            default=None,
            help="Path to the cargo-fl executable (optional, probed by default)",
        )

        return parser.parse_args(argv)


def main() -> None:
    """
    Main entry point for the application.

    This function simply delegates to the CLI class to start the application.
    It's kept separate to facilitate testing and to provide a clean entry point.
    """
    sys.exit(CLI.start())


if __name__ == "__main__":
    main()
