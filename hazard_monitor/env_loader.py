# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
Environment variable loader for the hazard monitor function app.
Loads the project root .env file (if present) so local runs and tests
see the same variables as the deployed Function App settings.
"""

import logging
import os
from pathlib import Path

from dotenv import load_dotenv

logger = logging.getLogger(__name__)


def load_root_env() -> bool:
    """
    Load environment variables from the project root .env file.

    Values already present in the process environment win, so Function App
    settings are never overridden by a stray local file.
    """
    root_dir = Path(__file__).parent.parent
    env_path = root_dir / ".env"

    if env_path.exists():
        logger.debug(f"Loading environment from: {env_path}")
        load_dotenv(env_path, override=False)
        return True

    logger.debug(f"No .env file at {env_path}, using process environment")
    return False


def get_bool_env(key: str, default: bool = False) -> bool:
    value = os.getenv(key)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


CREDENTIAL_VARS = ("COPERNICUS_CLIENT_ID", "COPERNICUS_CLIENT_SECRET")


def validate_environment() -> dict:
    """
    Report which Copernicus credential variables are set.

    Missing credentials are not fatal at startup; token requests raise
    ConfigurationError instead. The result feeds the startup warning and the
    health endpoint.
    """
    missing = [var for var in CREDENTIAL_VARS if not os.getenv(var)]
    return {
        "valid": not missing,
        "missing": missing,
        "present": [var for var in CREDENTIAL_VARS if var not in missing],
    }
