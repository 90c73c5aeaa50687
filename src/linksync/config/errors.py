"""Errors raised while reading linksync settings."""

from __future__ import annotations


class ConfigurationError(RuntimeError):
    """Raised when a setting holds a value linksync cannot use.

    ``variable`` names the environment variable at fault when there is one.
    """

    def __init__(self, message: str, *, variable: str | None = None) -> None:
        super().__init__(message)
        self.variable = variable


class MissingConfigurationError(ConfigurationError):
    """Raised when a required setting is unset or blank."""

    def __init__(self, variable: str) -> None:
        super().__init__(f"Missing configuration for: {variable}", variable=variable)
