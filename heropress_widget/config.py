"""Configuration loading for the widget host."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional
from xml.etree import ElementTree as ET

from .feeds import DEFAULT_TIMEOUT, HEROPRESS_FEED_URL

logger = logging.getLogger(__name__)


@dataclass
class LoggingConfig:
    level: str = "INFO"
    file: Optional[str] = None


@dataclass
class DatabaseConfig:
    connection_string: Optional[str] = None


@dataclass
class AppConfig:
    feed_url: str = HEROPRESS_FEED_URL
    timeout: float = DEFAULT_TIMEOUT
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _resolve_path(base_path: Path, target_path: str) -> str:
    """Resolve a path relative to the base config file if it's not absolute."""
    target = Path(target_path)
    if target.is_absolute():
        return str(target)
    return str((base_path.parent / target).resolve())


def parse_app_config(path: str) -> AppConfig:
    """Parse the host configuration XML."""
    config_path = Path(path).resolve()
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    logger.info("Loading application configuration from %s", config_path)
    try:
        root = ET.parse(config_path).getroot()
    except ET.ParseError as exc:
        raise ValueError(f"Config file is not valid XML: {exc}") from exc

    feed_url = (root.findtext("feed-url") or "").strip() or HEROPRESS_FEED_URL

    timeout_text = root.findtext("timeout")
    try:
        timeout = float(timeout_text) if timeout_text else DEFAULT_TIMEOUT
    except ValueError:
        raise ValueError(f"Invalid <timeout> value: {timeout_text!r}") from None
    if timeout <= 0:
        raise ValueError("<timeout> must be positive.")

    db_config = DatabaseConfig()
    db_node = root.find("database")
    if db_node is not None:
        db_config.connection_string = db_node.findtext("connection-string")

    logging_config = LoggingConfig()
    log_node = root.find("logging")
    if log_node is not None:
        logging_config.level = log_node.findtext("level", "INFO")
        log_file = log_node.findtext("file")
        if log_file:
            logging_config.file = _resolve_path(config_path, log_file)

    return AppConfig(
        feed_url=feed_url,
        timeout=timeout,
        database=db_config,
        logging=logging_config,
    )
