"""
Configuration management for the FinOps console.

Uses dynaconf for flexible configuration with YAML files and environment overrides.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from dynaconf import Dynaconf, Validator

# Get the project root directory
PROJECT_ROOT = Path(__file__).resolve().parents[3]
CONFIG_DIR = PROJECT_ROOT / "config"

DEFAULT_API_URL = "http://localhost:8000"

# Initialize dynaconf with multiple configuration sources
settings = Dynaconf(
    envvar_prefix="FINOPS",
    settings_files=[
        str(CONFIG_DIR / "config.yaml"),        # Base configuration
        str(CONFIG_DIR / "config.local.yaml"),  # Local overrides (git-ignored)
        str(CONFIG_DIR / ".secrets.yaml"),      # Secrets file (git-ignored)
    ],
    environments=False,
    load_dotenv=True,
    merge_enabled=True,
    envvar_separator="__",  # Support nested config via FINOPS_API__BASE_URL=http://...
    validators=[
        Validator("api.base_url", default=DEFAULT_API_URL),
        Validator("api.timeout", default=30, gt=0),

        Validator("forecast.days", default=90, gt=0),
        Validator("forecast.historical_days", default=180, gt=0),
        Validator("forecast.summary_days", default=30, gt=0),

        Validator("reports.default_format", default="pdf", is_in=["pdf", "html", "csv", "json"]),

        Validator("views.enforce_service_total", default=True),
        Validator("views.service_total_tolerance", default=0.01, gte=0),

        Validator("context.projects", default=[]),
        Validator("context.date_range", default="last-6m"),
        Validator("context.theme", default="dark", is_in=["dark", "light"]),

        Validator("logging.level", default="INFO"),
    ]
)


class ConsoleConfig:
    """Configuration wrapper for console settings."""

    def __init__(self):
        self.settings = settings
        self._validate_config()

    def _validate_config(self):
        """Validate the configuration on initialization."""
        try:
            settings.validators.validate()
        except Exception as e:
            # A half-written local config should not stop read-only commands
            logging.warning(f"Configuration validation warning: {e}")

    @property
    def api(self) -> Dict[str, Any]:
        """Console API connection settings."""
        return self.settings.get("api", {})

    @property
    def api_url(self) -> str:
        return str(self.api.get("base_url", DEFAULT_API_URL)).rstrip("/")

    @property
    def api_timeout(self) -> float:
        return float(self.api.get("timeout", 30))

    @property
    def forecast(self) -> Dict[str, Any]:
        """Forecast window settings."""
        return self.settings.get("forecast", {})

    @property
    def reports(self) -> Dict[str, Any]:
        return self.settings.get("reports", {})

    @property
    def views(self) -> Dict[str, Any]:
        """View consistency settings."""
        return self.settings.get("views", {})

    @property
    def context(self) -> Dict[str, Any]:
        """Initial session context (projects, date range, theme)."""
        return self.settings.get("context", {})

    @property
    def projects(self) -> List[str]:
        return list(self.context.get("projects", []))

    @property
    def log_level(self) -> str:
        return str(self.settings.get("logging.level", "INFO")).upper()

    def get_forecast_setting(self, name: str, default: Optional[int] = None) -> Optional[int]:
        value = self.forecast.get(name, default)
        return int(value) if value is not None else None

    def load_file(self, path: str):
        """Merge an extra settings file on top of the current configuration."""
        if not Path(path).is_file():
            raise FileNotFoundError(f"Configuration file not found: {path}")
        self.settings.load_file(path=path)
        self._validate_config()

    def override_from_cli(self, cli_args: Dict[str, Any]):
        """Override configuration with CLI arguments."""
        # Map CLI arguments to configuration paths
        cli_mapping = {
            "api_url": "api.base_url",
            "timeout": "api.timeout",
            "forecast_days": "forecast.days",
            "historical_days": "forecast.historical_days",
            "report_format": "reports.default_format",
        }

        for cli_key, config_path in cli_mapping.items():
            if cli_args.get(cli_key) is not None:
                self.settings.set(config_path, cli_args[cli_key])

        # Re-validate after overrides
        self._validate_config()


# Global configuration instance
config = ConsoleConfig()


def get_config() -> ConsoleConfig:
    """Get the global configuration instance."""
    return config


def reload_config():
    """Reload configuration from files."""
    global config
    settings.reload()
    config = ConsoleConfig()
    return config
