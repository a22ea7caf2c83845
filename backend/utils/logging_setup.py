# backend/utils/logging_setup.py
import logging
import logging.handlers
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s - %(message)s"
LOG_FILENAME = "pharmacy_pos.log"


def setup_logging(settings) -> Optional[Path]:
    """Configure root logging; adds a rotating file under LOG_DIR when it is set."""
    level = getattr(logging, (settings.LOG_LEVEL or "INFO").upper(), logging.INFO)
    fmt = logging.Formatter(LOG_FORMAT)

    root = logging.getLogger()
    root.setLevel(level)

    # avoid duplicate handlers when the app module is imported twice
    if not any(getattr(h, "_pharmacy_pos", False) for h in root.handlers):
        stream = logging.StreamHandler()
        stream.setFormatter(fmt)
        stream._pharmacy_pos = True
        root.addHandler(stream)

    if not settings.LOG_DIR:
        return None

    log_dir = Path(settings.LOG_DIR).expanduser()
    log_dir.mkdir(parents=True, exist_ok=True)
    log_path = log_dir / LOG_FILENAME

    if any(getattr(h, "baseFilename", "").endswith(LOG_FILENAME) for h in root.handlers):
        return log_path

    handler = logging.handlers.RotatingFileHandler(log_path, maxBytes=5_000_000, backupCount=3, encoding="utf-8")
    handler.setFormatter(fmt)
    handler.setLevel(level)
    root.addHandler(handler)

    # also wire uvicorn loggers (if present)
    for name in ("uvicorn", "uvicorn.access"):
        logging.getLogger(name).addHandler(handler)

    return log_path
