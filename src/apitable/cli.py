"""
apitable: tabular catalogue of a module's public type surface.

Usage:
    apitable <module-path>

The path is resolved against the working directory. A `.py` file,
package directory or compiled extension module is loaded with Python
introspection; a `.yaml` / `.yml` file is read as a surface manifest.
The report (plus any load diagnostics) is written to stdout; logging
goes to stderr. Settings come from `apitable.jsonc` in the working
directory or the file named by $APITABLE_CONFIG.
"""

import argparse
import logging
import sys
from pathlib import Path

from .config import ConfigurationManager
from .console import ConsoleManager
from .core import ApiTableService


class CliInterface:
    """
    Handles command-line arguments and application bootstrapping.
    """

    def __init__(self) -> None:
        self._parser = self._build_parser()

    def run(self, argv: list[str] | None = None) -> int:
        args = self._parser.parse_args(argv)

        # No module given: nothing to scan, and nothing is printed.
        if not args.module_path:
            return 0

        cwd = Path.cwd()
        mgr = ConfigurationManager()
        try:
            config = mgr.load_config(mgr.discover_user_config(cwd), {})
        except OSError as e:
            ConsoleManager(level=logging.ERROR, no_color=True).critical(
                f"Configuration Error: {e}"
            )
            return 1

        level = ConfigurationManager.log_level(config)
        ConsoleManager.configure(level)
        logger = ConsoleManager(level=level, no_color=bool(config.get("no_color")))

        try:
            service = ApiTableService(app_config=config, logger=logger)
            lines = service.run(cwd / args.module_path)
        except Exception as e:
            logger.critical(f"An unexpected error occurred: {e}")
            return 1

        sys.stdout.write("\n".join(lines) + "\n")
        return 0

    def _build_parser(self) -> argparse.ArgumentParser:
        parser = argparse.ArgumentParser(
            prog="apitable",
            description="Catalogue the public type surface of a module.",
        )
        parser.add_argument(
            "module_path",
            nargs="?",
            help="Module file, package directory or YAML manifest to scan.",
        )
        return parser


def main() -> None:
    sys.exit(CliInterface().run())


if __name__ == "__main__":
    main()
