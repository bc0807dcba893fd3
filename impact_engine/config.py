"""
Configuration management for the policy impact engine.
"""

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load environment variables from .env file if it exists
load_dotenv()


def _optional_int(name: str) -> Optional[int]:
    raw = os.getenv(name, "").strip()
    return int(raw) if raw else None


class Config:
    """Process-level settings. Simulation behaviour lives in SimulationConfig."""

    # Base paths
    PROJECT_ROOT: Path = Path(__file__).parent.parent
    CONFIG_DIR: Path = Path(os.getenv("IMPACT_CONFIG_DIR", str(PROJECT_ROOT / "configs")))

    # Logging settings
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_FORMAT: str = os.getenv(
        "LOG_FORMAT",
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    # Seed used when neither the call nor the scenario names one
    DEFAULT_RANDOM_SEED: Optional[int] = _optional_int("IMPACT_RANDOM_SEED")

    # Worker settings
    MAX_WORKERS: int = int(os.getenv("MAX_WORKERS", "4"))

    @classmethod
    def simulation_config_path(cls) -> Path:
        """Path of the shipped simulation config."""
        return cls.CONFIG_DIR / "simulation.yaml"
