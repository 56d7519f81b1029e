import logging
import sys

from colorama import Fore, Style, init


class ConsoleManager:
    """
    Leveled diagnostics on stderr, colored unless `no_color` is set.

    stdout is reserved for the report, so every message goes through the
    root logger that `configure()` points at stderr.
    """

    COLORS = {
        logging.DEBUG: Style.DIM,
        logging.WARNING: Fore.YELLOW,
        logging.ERROR: Fore.RED,
        logging.CRITICAL: Fore.RED + Style.BRIGHT,
    }

    def __init__(self, level: int, no_color: bool):
        self.level = level
        self.no_color = no_color
        if not no_color:
            init(autoreset=True)

    @staticmethod
    def configure(level: int) -> None:
        logging.basicConfig(
            level=level,
            format="%(message)s",
            handlers=[logging.StreamHandler(sys.stderr)],
        )

    def _emit(self, level: int, msg: str):
        if level < self.level:
            return
        color = "" if self.no_color else self.COLORS.get(level, "")
        logging.log(level, f"{color}{msg}{Style.RESET_ALL}" if color else msg)

    def debug(self, msg: str):
        self._emit(logging.DEBUG, msg)

    def info(self, msg: str):
        self._emit(logging.INFO, msg)

    def warning(self, msg: str):
        self._emit(logging.WARNING, msg)

    def error(self, msg: str):
        self._emit(logging.ERROR, msg)

    def critical(self, msg: str):
        self._emit(logging.CRITICAL, msg)
