"""
Configuration Management for gmaps-scraper

This module provides centralized configuration management with:
- Environment variable loading (configs/.env via python-dotenv)
- Type validation
- Sensible defaults
"""

import os
from pathlib import Path
from typing import Optional
from dotenv import load_dotenv


_TRUTHY = {"1", "true", "True", "yes"}


def _env_bool(name: str, default: str = "0") -> bool:
    return os.getenv(name, default) in _TRUTHY


class Config:
    """
    Scrape run configuration loaded from environment variables.

    All configuration is read from configs/.env or the process environment.
    See configs/.env.example for documentation of all settings. CLI flags
    override these values after construction.
    """

    def __init__(self, env_path: Optional[Path] = None):
        """
        Initialize configuration from environment.

        Args:
            env_path: Path to .env file (default: configs/.env)
        """
        if env_path is None:
            env_path = Path("configs/.env")

        load_dotenv(dotenv_path=env_path, override=True)

        # === Scheduling ===
        self.concurrency: int = int(os.getenv("CONCURRENCY", "2"))
        self.job_timeout: float = float(os.getenv("JOB_TIMEOUT", "300"))
        self.exit_on_inactivity: float = float(os.getenv("EXIT_ON_INACTIVITY", "0"))

        # === Search ===
        self.max_depth: int = int(os.getenv("MAX_DEPTH", "10"))
        self.lang_code: str = os.getenv("LANG_CODE", "en")
        self.geo_coordinates: str = os.getenv("GEO_COORDINATES", "")
        self.zoom: int = int(os.getenv("ZOOM", "15"))

        # === Enrichment ===
        self.extract_email: bool = _env_bool("EXTRACT_EMAIL")
        self.extra_reviews: bool = _env_bool("EXTRA_REVIEWS")
        self.reviews_limit: int = int(os.getenv("REVIEWS_LIMIT", "300"))
        self.reviews_threshold: int = int(os.getenv("REVIEWS_THRESHOLD", "8"))

        # === Browser ===
        self.headless: bool = _env_bool("HEADLESS", "1")
        self.nav_timeout_ms: int = int(os.getenv("NAV_TIMEOUT_MS", "30000"))

        # === Logging ===
        self.log_level: str = os.getenv("LOG_LEVEL", "INFO")
        # Empty LOG_DIR disables the run log file
        log_dir = os.getenv("LOG_DIR", "logs")
        self.log_dir: Optional[Path] = Path(log_dir) if log_dir else None

        # === Output ===
        self.results_file: str = os.getenv("RESULTS_FILE", "stdout")
        self.json_output: bool = _env_bool("JSON_OUTPUT")

    def validate(self) -> None:
        """
        Validate configuration values.

        Raises:
            ValueError: If any setting is out of range
        """
        errors = []

        if self.concurrency < 1:
            errors.append(f"CONCURRENCY must be greater than 0, got {self.concurrency}")

        if self.max_depth < 1:
            errors.append(f"MAX_DEPTH must be greater than 0, got {self.max_depth}")

        if self.zoom < 0 or self.zoom > 21:
            errors.append(f"ZOOM must be between 0 and 21, got {self.zoom}")

        if self.reviews_limit < -1:
            errors.append(f"REVIEWS_LIMIT must be -1 (unlimited) or non-negative, got {self.reviews_limit}")

        if self.reviews_threshold < 0:
            errors.append(f"REVIEWS_THRESHOLD must be non-negative, got {self.reviews_threshold}")

        if self.exit_on_inactivity < 0:
            errors.append(f"EXIT_ON_INACTIVITY must be non-negative, got {self.exit_on_inactivity}")

        if self.job_timeout <= 0:
            errors.append(f"JOB_TIMEOUT must be positive, got {self.job_timeout}")

        if self.nav_timeout_ms <= 0:
            errors.append(f"NAV_TIMEOUT_MS must be positive, got {self.nav_timeout_ms}")

        if self.geo_coordinates:
            parts = self.geo_coordinates.split(",")
            try:
                if len(parts) != 2:
                    raise ValueError
                float(parts[0])
                float(parts[1])
            except ValueError:
                errors.append(f"GEO_COORDINATES must look like 'lat,lon', got {self.geo_coordinates!r}")

        if errors:
            raise ValueError("Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors))

    def __repr__(self) -> str:
        return (
            f"Config(\n"
            f"  concurrency={self.concurrency},\n"
            f"  max_depth={self.max_depth},\n"
            f"  lang_code={self.lang_code},\n"
            f"  extract_email={self.extract_email},\n"
            f"  extra_reviews={self.extra_reviews},\n"
            f"  reviews_limit={self.reviews_limit},\n"
            f"  exit_on_inactivity={self.exit_on_inactivity},\n"
            f"  log_level={self.log_level}\n"
            f")"
        )
