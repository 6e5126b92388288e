"""Configuration management: profiles, TOML loading, and config models.

Usage:
    >>> from funorm.config import load_db_config, DatabaseProfile, DatabaseConfig
"""

from funorm.config.loader import load_db_config
from funorm.config.models import DatabaseConfig, DatabaseProfile

__all__ = ["load_db_config", "DatabaseConfig", "DatabaseProfile"]
