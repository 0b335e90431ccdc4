# contact_relay/core/event_log.py
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional
from zoneinfo import ZoneInfo

from contact_relay.core.settings import settings

log = logging.getLogger("uvicorn.error")

LOG_FILENAME = "contact.log"
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def now_local() -> datetime:
    return datetime.now(ZoneInfo(settings.contact_timezone))


def format_timestamp(moment: Optional[datetime] = None) -> str:
    return (moment or now_local()).strftime(TIMESTAMP_FORMAT)


def contact_log_path() -> Optional[Path]:
    """Return the event log file, creating its directory; None when that fails."""
    directory = Path(settings.contact_log_dir)
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        log.warning(f"[contact-log] cannot create {directory}: {exc}")
        return None
    return directory / LOG_FILENAME


def log_contact_event(event: str, context: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Append one JSON line for `event`. Never raises; falls back to the app logger."""
    payload = {
        "timestamp": format_timestamp(),
        "event": event,
        "context": context or {},
    }
    try:
        line = json.dumps(payload, ensure_ascii=False, default=str)
    except (TypeError, ValueError):
        line = f"[{payload['timestamp']}] {event}"

    path = contact_log_path()
    if path is not None:
        try:
            with path.open("a", encoding="utf-8") as f:
                f.write(line + "\n")
            return payload
        except OSError as exc:
            log.warning(f"[contact-log] append to {path} failed: {exc}")

    log.info(line)
    return payload
