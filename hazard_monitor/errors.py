# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
Error taxonomy for the satellite data service.

Every error carries the HTTP status it maps to at the function boundary.
Upstream failures also keep the status code returned by the remote service.
"""
from typing import Optional


class SatelliteDataError(Exception):
    """Base class for all errors raised by the satellite data service."""

    http_status = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class BadRequest(SatelliteDataError):
    """Caller input is missing or invalid."""

    http_status = 400


class InvalidAction(BadRequest):
    """The requested action is not one of the supported actions."""

    def __init__(self, action: Optional[str]):
        super().__init__("Invalid action")
        self.action = action


class UnknownRegionError(SatelliteDataError):
    http_status = 400

    def __init__(self, region_id: str):
        super().__init__(f"Unknown region: {region_id}")
        self.region_id = region_id


class ConfigurationError(SatelliteDataError):
    """Required service configuration (e.g. catalog credentials) is missing."""


class AuthError(SatelliteDataError):
    """The identity provider refused to issue an access token."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class CatalogError(SatelliteDataError):
    """The product catalog answered with a non-2xx status or could not be reached."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code
