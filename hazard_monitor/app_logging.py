# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
Logging setup shared by the function app and the hazard_monitor modules.
"""
import logging
from typing import Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s"

_configured = False


def setup_logging(level: Optional[str] = None) -> None:
    """Configure root logging once per worker process."""
    global _configured

    log_level = getattr(logging, (level or "INFO").upper(), logging.INFO)
    if not _configured:
        logging.basicConfig(
            format=LOG_FORMAT,
            handlers=[logging.StreamHandler()]
        )
        # aiohttp client chatter is not useful at INFO
        logging.getLogger("aiohttp").setLevel(logging.WARNING)
        _configured = True

    logging.getLogger().setLevel(log_level)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
