"""
Central configuration.

Database: any MySQL-compatible server. Configure via environment variables:
  - CSO_DB_HOST (default: 127.0.0.1)
  - CSO_DB_PORT (default: 3306)
  - CSO_DB_USER (default: root)
  - CSO_DB_PASSWORD (default: empty)
  - CSO_DB_DATABASE (default: cso_assessment)

Logging:
  - CSO_LOG_LEVEL (default: INFO)

The CLI loads a `.env` file from the working directory before reading these.
"""

import os
from functools import lru_cache
from pathlib import Path


@lru_cache(maxsize=1)
def get_db_config() -> dict:
    """Get connection settings for the entity store.

    Returns:
        Keyword arguments for pymysql.connect (without cursorclass)
    """
    return {
        "host": os.environ.get("CSO_DB_HOST", "127.0.0.1"),
        "port": int(os.environ.get("CSO_DB_PORT", "3306")),
        "user": os.environ.get("CSO_DB_USER", "root"),
        "password": os.environ.get("CSO_DB_PASSWORD", ""),
        "database": os.environ.get("CSO_DB_DATABASE", "cso_assessment"),
        "autocommit": True,
        "charset": "utf8mb4",
    }


def get_log_level() -> str:
    """Get the configured log level name."""
    return os.environ.get("CSO_LOG_LEVEL", "INFO").upper()


def get_data_dir() -> Path:
    """Directory holding the bundled questionnaire and rule seed files."""
    return Path(__file__).parent / "data"


def get_questionnaire_path() -> Path:
    return get_data_dir() / "questionnaire.yaml"


def get_assessment_rules_path() -> Path:
    return get_data_dir() / "assessment_rules.yaml"
