# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
Core configuration for the hazard monitor function app.
"""
import os

from .env_loader import get_bool_env, load_root_env

# Ensure environment is loaded
load_root_env()

DEFAULT_TOKEN_URL = "https://identity.dataspace.copernicus.eu/auth/realms/CDSE/protocol/openid-connect/token"
DEFAULT_CATALOG_URL = "https://catalogue.dataspace.copernicus.eu/odata/v1/Products"


class Settings:
    """Application settings using simple environment variable access."""

    def __init__(self):
        # App Configuration
        self.app_name = "Romania Hazard Monitor"
        self.app_version = "1.0.0"
        self.log_level = os.getenv("LOG_LEVEL", "INFO").upper()

        # Copernicus Data Space credentials (OAuth2 client-credentials grant)
        self.copernicus_client_id = os.getenv("COPERNICUS_CLIENT_ID")
        self.copernicus_client_secret = os.getenv("COPERNICUS_CLIENT_SECRET")
        self.copernicus_token_url = os.getenv("COPERNICUS_TOKEN_URL", DEFAULT_TOKEN_URL)

        # Product catalog (OData)
        self.copernicus_catalog_url = os.getenv("COPERNICUS_CATALOG_URL", DEFAULT_CATALOG_URL)
        self.catalog_max_results = int(os.getenv("CATALOG_MAX_RESULTS", "10"))

        # Outbound HTTP
        self.http_timeout_seconds = float(os.getenv("HTTP_TIMEOUT_SECONDS", "30"))

        # Token caching is opt-in; the default is one token round trip per request
        self.token_cache_enabled = get_bool_env("TOKEN_CACHE_ENABLED", False)
        self.token_expiry_margin_seconds = int(os.getenv("TOKEN_EXPIRY_MARGIN_SECONDS", "60"))


# Global settings instance
settings = Settings()
