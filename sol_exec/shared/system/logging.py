"""
Centralized Logger with Rich Console
====================================
Single logging entry point for the execution core.

Usage:
    from sol_exec.shared.system.logging import Logger

    Logger.info("[RPC] Rotated to rpc-1")
    Logger.success("[SUBMIT] Confirmed 5xYk...")
    Logger.warning("Something concerning")
    Logger.error("Something broke")
    Logger.section("Starting Executor")

Messages carrying key material must never reach this module; log public
keys through `short_key()`.
"""

import os
import logging
import threading
from datetime import datetime
from logging.handlers import RotatingFileHandler
from typing import Optional

from rich.console import Console
from rich.text import Text

from config.settings import Settings


# Per-run session log file, created on first write
_run_id = datetime.now().strftime("%Y%m%d_%H%M%S")
_file_logger: Optional[logging.Logger] = None
_file_logger_lock = threading.Lock()

_console = Console()


# =============================================================================
# SOURCE ICONS (for visual scanning)
# =============================================================================

SOURCE_ICONS = {
    "SYSTEM": "🛸",
    "RPC": "📡",
    "WALLET": "👛",
    "SIM": "🧪",
    "SIGNER": "🔐",
    "SUBMIT": "📤",
    "BALANCE": "💰",
    "API": "🌐",
}

# Level colors for Rich
LEVEL_STYLES = {
    "INFO": "cyan",
    "SUCCESS": "green bold",
    "WARNING": "yellow",
    "ERROR": "red bold",
    "DEBUG": "dim",
    "CRITICAL": "red bold reverse",
    "SECTION": "magenta bold",
}


def short_key(pubkey: str) -> str:
    """Abbreviate a base58 public key or signature for log lines."""
    pubkey = str(pubkey)
    if len(pubkey) <= 12:
        return pubkey
    return f"{pubkey[:4]}...{pubkey[-4:]}"


def _get_file_logger() -> Optional[logging.Logger]:
    global _file_logger
    if not Settings.LOG_TO_FILE:
        return None
    if _file_logger is not None:
        return _file_logger

    with _file_logger_lock:
        if _file_logger is None:
            os.makedirs(Settings.LOG_DIR, exist_ok=True)
            log_file = os.path.join(Settings.LOG_DIR, f"sol_exec_{_run_id}.log")

            handler = RotatingFileHandler(
                log_file, maxBytes=5 * 1024 * 1024, backupCount=3, encoding="utf-8"
            )
            handler.setFormatter(
                logging.Formatter(
                    "%(asctime)s [%(levelname)s] %(message)s", datefmt="%Y-%m-%d %H:%M:%S"
                )
            )

            file_logger = logging.getLogger("SolExec")
            file_logger.setLevel(logging.DEBUG)
            file_logger.addHandler(handler)
            file_logger.propagate = False
            _file_logger = file_logger
    return _file_logger


# =============================================================================
# LOGGER CLASS
# =============================================================================

class Logger:
    """
    Centralized logger with Rich console output.

    - Color-coded console lines with source icons
    - Rotating per-run file log (Settings.LOG_TO_FILE)
    - `[SOURCE]` prefix parsing
    """

    _silent_mode = False

    @staticmethod
    def _timestamp() -> str:
        """High-precision timestamp (HH:MM:SS.ms)."""
        now = datetime.now()
        return f"{now.strftime('%H:%M:%S')}.{now.microsecond // 1000:03d}"

    @staticmethod
    def _parse_source(message: str) -> tuple:
        """Extract [SOURCE] tag from message if present."""
        stripped = message.strip()
        if stripped.startswith("[") and "]" in stripped:
            tag_end = stripped.index("]")
            source = stripped[1:tag_end].upper()
            if 0 < len(source) < 15:
                return source, stripped[tag_end + 1:].strip()
        return "SYSTEM", message

    @staticmethod
    def _format_console(level: str, message: str, source: str) -> None:
        if Logger._silent_mode or Settings.SILENT_MODE:
            return

        icon = SOURCE_ICONS.get(source, "")
        msg_with_icon = f"{icon} {message}" if icon else message

        line = Text()
        line.append(f"{Logger._timestamp()} ", style="dim")
        line.append(f"| {level[:8].ljust(8)} ", style=LEVEL_STYLES.get(level, "white"))
        line.append(f"| {source[:10].ljust(10)} | ", style="dim")
        line.append(msg_with_icon)
        _console.print(line)

    @staticmethod
    def _log_to_file(level: int, message: str, source: str = "") -> None:
        file_logger = _get_file_logger()
        if file_logger is None:
            return
        file_logger.log(level, f"[{source}] {message}" if source else message)

    # =========================================================================
    # PUBLIC API
    # =========================================================================

    @staticmethod
    def info(message: str) -> None:
        source, msg = Logger._parse_source(message)
        Logger._format_console("INFO", msg, source)
        Logger._log_to_file(logging.INFO, msg, source)

    @staticmethod
    def success(message: str) -> None:
        source, msg = Logger._parse_source(message)
        Logger._format_console("SUCCESS", msg, source)
        Logger._log_to_file(logging.INFO, f"✅ {msg}", source)

    @staticmethod
    def warning(message: str) -> None:
        source, msg = Logger._parse_source(message)
        Logger._format_console("WARNING", msg, source)
        Logger._log_to_file(logging.WARNING, msg, source)

    @staticmethod
    def error(message: str) -> None:
        source, msg = Logger._parse_source(message)
        Logger._format_console("ERROR", msg, source)
        Logger._log_to_file(logging.ERROR, msg, source)

    @staticmethod
    def debug(message: str) -> None:
        source, msg = Logger._parse_source(message)
        Logger._log_to_file(logging.DEBUG, msg, source)

    @staticmethod
    def critical(message: str) -> None:
        source, msg = Logger._parse_source(message)
        Logger._format_console("CRITICAL", f"🛑 {msg}", source)
        Logger._log_to_file(logging.CRITICAL, f"🛑 {msg}", source)

    @staticmethod
    def section(title: str) -> None:
        """Print a section header."""
        if not (Logger._silent_mode or Settings.SILENT_MODE):
            _console.print()
            _console.rule(f"[bold magenta]{title}[/]", style="dim")
        Logger._log_to_file(logging.INFO, f"=== {title} ===", "SYSTEM")

    @staticmethod
    def set_silent(silent: bool) -> None:
        """Enable/disable console output."""
        Logger._silent_mode = silent
