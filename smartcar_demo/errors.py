from __future__ import annotations

from typing import Optional


class SmartcarDemoError(Exception):
    """Base class for errors raised by this package."""


class ConfigError(SmartcarDemoError):
    def __init__(self, problems: list[str]) -> None:
        self.problems = list(problems)
        super().__init__("Invalid configuration: " + "; ".join(self.problems))


class GatewayError(SmartcarDemoError):
    """A Smartcar call failed. Carries the attempted action and a readable message."""

    default_message = "The request to Smartcar failed."

    def __init__(self, action: str, message: Optional[str] = None) -> None:
        self.action = action
        self.message = message or self.default_message
        super().__init__(f"{action}: {self.message}")


class ExchangeError(GatewayError):
    default_message = "Unable to exchange the authorization code for an access token."

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__("exchange", message)


class ApiError(GatewayError):
    default_message = "The vehicle request could not be completed."
