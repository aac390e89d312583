# cm_dashboard/config.py
"""
Centralized Configuration Management

Version: 1.0.0
Features:
- Support both local (.env) and Streamlit Cloud (secrets.toml)
- Singleton pattern for efficiency
- Type-safe getters with defaults
- Environment detection
"""

import os
import logging
from pathlib import Path
from dotenv import load_dotenv
from typing import Dict, Any, Optional
from dataclasses import dataclass

from .boq_query.constants import (
    PAGE_SIZE,
    DEFAULT_LIMIT,
    MAX_EXPORT_ROWS,
)

# Initialize logger
logger = logging.getLogger(__name__)


def is_running_on_streamlit_cloud() -> bool:
    """Detect if running on Streamlit Cloud"""
    try:
        import streamlit as st
        return hasattr(st, 'secrets') and len(st.secrets) > 0
    except Exception:
        return False


def _as_bool(value: Any, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() == "true"


@dataclass
class BoqConfig:
    """BOQ explorer configuration container"""
    page_size: int = PAGE_SIZE
    default_limit: int = DEFAULT_LIMIT
    max_export_rows: int = MAX_EXPORT_ROWS

    def to_dict(self) -> Dict[str, Any]:
        return {
            'page_size': self.page_size,
            'default_limit': self.default_limit,
            'max_export_rows': self.max_export_rows,
        }

    def validate(self):
        for name, value in self.to_dict().items():
            if value < 1:
                raise ValueError(f"BOQ setting '{name}' must be >= 1 (got {value})")


class Config:
    """
    Centralized configuration management

    Usage:
        from cm_dashboard.config import get_config

        config = get_config()

        # Get BOQ explorer settings
        boq = config.get_boq_config()

        # Get app settings
        theme = config.get_app_setting("DEFAULT_THEME", "light")

        # Check feature flags
        if config.is_feature_enabled("PDF_EXPORT"):
            ...
    """

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return

        self.is_cloud = is_running_on_streamlit_cloud()
        self._load_config()
        self._initialized = True

    def _load_config(self):
        """Load configuration based on environment"""
        if self.is_cloud:
            self._load_cloud_config()
        else:
            self._load_local_config()

        self._boq_config.validate()
        self._log_config_status()

    def _load_cloud_config(self):
        """Load configuration from Streamlit Cloud secrets"""
        import streamlit as st

        boq_secrets = st.secrets.get("BOQ", {})
        self._boq_config = BoqConfig(
            page_size=int(boq_secrets.get("PAGE_SIZE", PAGE_SIZE)),
            default_limit=int(boq_secrets.get("DEFAULT_LIMIT", DEFAULT_LIMIT)),
            max_export_rows=int(boq_secrets.get("MAX_EXPORT_ROWS", MAX_EXPORT_ROWS)),
        )

        app_secrets = st.secrets.get("APP", {})
        self._app_config = {
            "DEFAULT_THEME": app_secrets.get("DEFAULT_THEME", "light"),
            "LOG_LEVEL": app_secrets.get("LOG_LEVEL", "INFO"),
            "ENABLE_PDF_EXPORT": _as_bool(app_secrets.get("ENABLE_PDF_EXPORT"), True),
            "ENABLE_EXCEL_EXPORT": _as_bool(app_secrets.get("ENABLE_EXCEL_EXPORT"), True),
        }

        logger.info("☁️ Running in STREAMLIT CLOUD")

    def _load_local_config(self):
        """Load configuration from local .env file"""
        # Find and load .env file
        env_paths = [
            Path.cwd() / ".env",
            Path(__file__).parent.parent / ".env",
        ]

        for env_path in env_paths:
            if env_path.exists():
                load_dotenv(env_path)
                logger.info(f"Loaded .env from: {env_path}")
                break

        self._boq_config = BoqConfig(
            page_size=int(os.getenv("BOQ_PAGE_SIZE", str(PAGE_SIZE))),
            default_limit=int(os.getenv("BOQ_DEFAULT_LIMIT", str(DEFAULT_LIMIT))),
            max_export_rows=int(os.getenv("BOQ_MAX_EXPORT_ROWS", str(MAX_EXPORT_ROWS))),
        )

        self._app_config = {
            "DEFAULT_THEME": os.getenv("DEFAULT_THEME", "light"),
            "LOG_LEVEL": os.getenv("LOG_LEVEL", "INFO"),
            "ENABLE_PDF_EXPORT": _as_bool(os.getenv("ENABLE_PDF_EXPORT"), True),
            "ENABLE_EXCEL_EXPORT": _as_bool(os.getenv("ENABLE_EXCEL_EXPORT"), True),
        }

        logger.info("💻 Running in LOCAL environment")

    def _log_config_status(self):
        """Log configuration status"""
        boq = self._boq_config
        logger.info(
            f"✅ BOQ explorer: page_size={boq.page_size}, "
            f"default_limit={boq.default_limit}, max_export_rows={boq.max_export_rows}"
        )
        logger.info(f"✅ PDF export: {'Enabled' if self._app_config['ENABLE_PDF_EXPORT'] else 'Disabled'}")

    # ==================== PUBLIC GETTERS ====================

    def get_boq_config(self) -> BoqConfig:
        """Get BOQ explorer configuration"""
        return self._boq_config

    def get_app_setting(self, key: str, default: Any = None) -> Any:
        """Get application setting with default"""
        return self._app_config.get(key, default)

    def is_feature_enabled(self, feature: str) -> bool:
        """Check if feature is enabled"""
        key = f"ENABLE_{feature.upper()}"
        return self._app_config.get(key, True)

    @property
    def app_config(self) -> Dict[str, Any]:
        return self._app_config.copy()

    @classmethod
    def reset(cls) -> Optional["Config"]:
        """Drop the singleton so the next access reloads settings (tests)."""
        previous = cls._instance
        cls._instance = None
        return previous


def get_config() -> Config:
    """Return the process-wide configuration, loading it on first use."""
    return Config()


__all__ = [
    'Config',
    'BoqConfig',
    'get_config',
    'is_running_on_streamlit_cloud',
]
