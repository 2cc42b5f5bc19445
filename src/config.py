"""
Configuration module for loading environment variables.

This module loads environment variables from .env file and exposes
thresholds and key policies used by extraction and reconciliation.
"""

import os
from dotenv import load_dotenv
load_dotenv()


def _env_flag(name: str, default: str = "true") -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes", "on")


# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Extraction scoring
REVIEW_CONFIDENCE_THRESHOLD = float(os.getenv("REVIEW_CONFIDENCE_THRESHOLD", "0.7"))
VALIDATION_PENALTY = float(os.getenv("VALIDATION_PENALTY", "0.8"))
BASE_CONFIDENCE = 0.5

# Classification
CLASSIFIER_PREVIEW_LENGTH = int(os.getenv("CLASSIFIER_PREVIEW_LENGTH", "1000"))

# Reconciliation key policy (FILE: fallback is always on)
USE_FILENAME_PATTERN_KEYS = _env_flag("USE_FILENAME_PATTERN_KEYS")
USE_MAKE_MODEL_YEAR_KEYS = _env_flag("USE_MAKE_MODEL_YEAR_KEYS")
