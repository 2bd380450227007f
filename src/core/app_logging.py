import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path


def _parse_int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        val = int(raw)
        if val < 1:
            return default
        return val
    except ValueError:
        return default


def _parse_level(level_name: str, default: int) -> int:
    level = getattr(logging, level_name.upper(), None)
    return level if isinstance(level, int) else default


def _apply_module_levels(root_logger: logging.Logger, default_level: int) -> None:
    """
    Per-module levels, e.g.
    LYRICSYNC_LOG_MODULE_LEVELS="player.tracker=DEBUG,core.resolver=INFO"
    """
    raw = os.getenv("LYRICSYNC_LOG_MODULE_LEVELS", "").strip()
    if not raw:
        return

    for item in raw.split(","):
        entry = item.strip()
        if not entry or "=" not in entry:
            root_logger.warning("Invalid module-level logging entry: %s", entry)
            continue

        module_name, level_name = (part.strip() for part in entry.split("=", 1))
        if not module_name or not level_name:
            root_logger.warning("Invalid module-level logging entry: %s", entry)
            continue

        level = _parse_level(level_name, default_level)
        logging.getLogger(module_name).setLevel(level)
        root_logger.info("Log level override: %s=%s", module_name, logging.getLevelName(level))


def setup_logging() -> None:
    """
    Configure application-wide logging once.

    Env vars:
    - LYRICSYNC_LOG_LEVEL: DEBUG/INFO/WARNING/ERROR (default: INFO)
    - LYRICSYNC_LOG_FILE: optional path to a log file
    - LYRICSYNC_LOG_ROTATE_BYTES: max file size before rotation (default: 5242880)
    - LYRICSYNC_LOG_BACKUP_COUNT: number of rotated files to keep (default: 3)
    - LYRICSYNC_LOG_MODULE_LEVELS: comma-separated module overrides
    """
    level = _parse_level(os.getenv("LYRICSYNC_LOG_LEVEL", "INFO"), logging.INFO)

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    formatter = logging.Formatter(
        fmt="%(asctime)s | %(levelname)-7s | %(name)s | %(message)s",
        datefmt="%H:%M:%S",
    )

    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(formatter)
    root.addHandler(console)

    log_file = os.getenv("LYRICSYNC_LOG_FILE")
    if log_file:
        path = Path(log_file).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            path,
            maxBytes=_parse_int_env("LYRICSYNC_LOG_ROTATE_BYTES", 5 * 1024 * 1024),
            backupCount=_parse_int_env("LYRICSYNC_LOG_BACKUP_COUNT", 3),
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    # requests/urllib3 are chatty at DEBUG
    logging.getLogger("urllib3").setLevel(max(level, logging.INFO))

    _apply_module_levels(root, level)
