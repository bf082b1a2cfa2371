"""Configuration for the test progress reporter - .env file plus environment."""

import logging
import os
import sys
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

CONFIG_KEYS = ['TESTLOGGER_ENABLED', 'TESTLOGGER_ASCII', 'TESTLOGGER_DECORATED']


def load_config(path: Optional[str] = None) -> dict:
    """Load config from environment variables and .env file.

    Environment variables take precedence over .env file values, so a CI job
    can override a checked-in .env without editing it.
    """
    paths = [
        path,
        os.environ.get('TESTLOGGER_CONFIG'),
        Path.cwd() / '.env',
    ]
    config = {}
    for p in paths:
        if p and Path(p).exists():
            try:
                for line in Path(p).read_text().splitlines():
                    line = line.strip()
                    if line and not line.startswith('#') and '=' in line:
                        key, value = line.split('=', 1)
                        config[key.strip()] = value.strip()
                break
            except OSError as e:
                logger.warning(f"Could not read config file {p}: {e}")

    for key in CONFIG_KEYS:
        env_value = os.environ.get(key)
        if env_value is not None:
            config[key] = env_value

    return config


def _flag(value: Optional[str], default: bool) -> bool:
    if value is None or value.strip() == '':
        return default
    return value.strip().lower() not in ('false', '0', 'no', 'off')


def is_enabled(config: dict) -> bool:
    """Anything but an explicit ``false`` keeps output on."""
    return _flag(config.get('TESTLOGGER_ENABLED'), True)


def is_decorated(config: dict) -> bool:
    return _flag(config.get('TESTLOGGER_DECORATED'), True)


def use_ascii(config: dict) -> bool:
    """Fall back to ASCII symbols on Windows consoles without a modern terminal."""
    forced = config.get('TESTLOGGER_ASCII')
    if forced is not None and forced.strip() != '':
        return _flag(forced, False)
    return (
        sys.platform.startswith('win')
        and os.environ.get('WT_SESSION') is None
        and os.environ.get('TERM_PROGRAM') is None
    )
