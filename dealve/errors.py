# SPDX-License-Identifier: MIT
"""Error types raised by the IsThereAnyDeal gateway."""


class DealveError(Exception):
    """Base class for gateway failures."""

    prefix = "Error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"{self.prefix}: {self.message}"


class ApiError(DealveError):
    """The API answered with a non-2xx status."""

    prefix = "API error"


class NetworkError(DealveError):
    """Transport failure (DNS, connect, timeout, reset)."""

    prefix = "Network error"


class ParseError(DealveError):
    """The response body did not match the expected shape."""

    prefix = "Parse error"


class ConfigError(DealveError):
    """Missing credential or other local misconfiguration."""

    prefix = "Configuration error"
