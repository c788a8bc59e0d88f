"""
Pipeline settings loaded from the environment (and an optional .env file).

Components take explicit constructor arguments; only the scripts and the
serving entry point read these values.
"""
import logging
import os
from dotenv import load_dotenv

load_dotenv()


def _as_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes")


class Config:
    """Pipeline configuration."""
    # === Storage ===
    FEATURE_STORE_PATH: str = os.getenv("FEATURE_STORE_PATH", "ml-pipeline-features")
    MODEL_REGISTRY_PATH: str = os.getenv("MODEL_REGISTRY_PATH", "ml-pipeline-models")
    USE_S3: bool = _as_bool(os.getenv("USE_S3", "false"))

    # === Data ===
    RAW_DATA_PATH: str = os.getenv("RAW_DATA_PATH", "data/raw_data.csv")
    TARGET_COLUMN: str = os.getenv("TARGET_COLUMN", "target")

    # === Model ===
    # "latest" resolves through the model registry
    MODEL_VERSION: str = os.getenv("MODEL_VERSION", "latest")
    ACCURACY_THRESHOLD: float = float(os.getenv("ACCURACY_THRESHOLD", "0.85"))
    TUNE_HYPERPARAMETERS: bool = _as_bool(os.getenv("TUNE_HYPERPARAMETERS", "false"))

    # === Serving ===
    APP_HOST: str = os.getenv("APP_HOST", "0.0.0.0")
    APP_PORT: int = int(os.getenv("APP_PORT", "8000"))

    # === Logging ===
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")


config = Config()


def get_log_level() -> int:
    """Numeric logging level for Config.LOG_LEVEL, INFO when unrecognised."""
    level = logging.getLevelName(config.LOG_LEVEL.upper())
    return level if isinstance(level, int) else logging.INFO
