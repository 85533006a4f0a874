import logging
import sys
from pathlib import Path

__all__ = ["configure_logging", "logger"]

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

logger = logging.getLogger("focusai")


def configure_logging(log_dir: Path | None, level: int = logging.INFO) -> None:
    """Attach console and file handlers to the package logger once."""
    if logger.handlers:
        return
    logger.setLevel(level)
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(formatter)
    logger.addHandler(console)

    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(log_dir / "focusai.log", encoding="utf-8")
        fh.setFormatter(formatter)
        logger.addHandler(fh)
