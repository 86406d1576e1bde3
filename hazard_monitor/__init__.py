# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
Satellite product discovery and hazard indicators for Romanian regions.
"""

from .config import settings, Settings
from .app_logging import setup_logging, get_logger

__all__ = ["settings", "Settings", "setup_logging", "get_logger"]
