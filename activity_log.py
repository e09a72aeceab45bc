import os
import threading
from datetime import datetime
from pathlib import Path
from typing import Optional


_DEFAULT_LOG_PATH = "mindmap.log"
_activity_log_lock = threading.Lock()


def activity_log_path() -> Path:
    return Path(os.getenv("MINDMAP_LOG_PATH", _DEFAULT_LOG_PATH))


def reset_activity_log() -> None:
    with _activity_log_lock:
        activity_log_path().write_text("", encoding="utf-8")


def log_event(status: str, subject: str, detail: Optional[str] = None) -> None:
    timestamp = datetime.now().isoformat(timespec="seconds")
    message = detail.strip() if detail else ""
    line = f"{timestamp}\t{status.upper()}\t{subject}"
    if message:
        # Keep one event per line.
        line = f"{line}\t{' '.join(message.split())}"
    with _activity_log_lock:
        with activity_log_path().open("a", encoding="utf-8") as log:
            log.write(line + "\n")
