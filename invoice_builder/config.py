"""Central configuration for Invoice Builder."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_DATA_DIR = Path.home() / ".invoice-builder"
DEFAULT_HTTP_TIMEOUT = 30

_logging_configured = False


@dataclass(frozen=True)
class Settings:
    notion_api_key: Optional[str]
    notion_clients_db: Optional[str]
    notion_invoices_db: Optional[str]
    data_dir: Path
    log_level: str
    http_timeout: int

    @property
    def notion_enabled(self) -> bool:
        return bool(self.notion_api_key and self.notion_clients_db and self.notion_invoices_db)


def _get_timeout() -> int:
    raw = os.getenv("INVOICER_HTTP_TIMEOUT")
    if not raw:
        return DEFAULT_HTTP_TIMEOUT
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Invalid INVOICER_HTTP_TIMEOUT: %s, using %s", raw, DEFAULT_HTTP_TIMEOUT)
        return DEFAULT_HTTP_TIMEOUT
    return value if value > 0 else DEFAULT_HTTP_TIMEOUT


def load_settings() -> Settings:
    """Read settings from the environment (and a ``.env`` file if present)."""
    load_dotenv()
    data_dir = os.getenv("INVOICER_DATA_DIR")
    return Settings(
        notion_api_key=os.getenv("NOTION_API_KEY") or None,
        notion_clients_db=os.getenv("NOTION_CLIENTS_DB") or None,
        notion_invoices_db=os.getenv("NOTION_INVOICES_DB") or None,
        data_dir=Path(data_dir).expanduser() if data_dir else DEFAULT_DATA_DIR,
        log_level=(os.getenv("INVOICER_LOG_LEVEL") or "INFO").upper(),
        http_timeout=_get_timeout(),
    )


def configure_logging(level: str = "INFO") -> None:
    """Set up root logging once; Streamlit reruns the script on every event."""
    global _logging_configured
    if _logging_configured:
        return
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    _logging_configured = True
