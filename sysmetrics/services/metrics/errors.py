"""Exception hierarchy for metric aggregation.

Configuration problems surface at construction time; provider teardown
failures are collected and surfaced once from the shutdown call that ran them.
"""

from typing import List, Tuple


class MetricsError(Exception):
    """Base class for all metric aggregation errors."""


class ConfigurationError(MetricsError):
    """Raised when an aggregator is wired with an invalid provider set."""


class DuplicateProviderError(ConfigurationError):
    """Raised when two providers are registered under the same subsystem name."""

    def __init__(self, name: str):
        super().__init__(f"Duplicate metric provider name: '{name}'")
        self.name = name


class ProviderShutdownError(MetricsError):
    """Raised after shutdown completes if one or more providers failed to stop.

    Attributes:
        errors: (subsystem name, exception) pairs in registration order
    """

    def __init__(self, errors: List[Tuple[str, BaseException]]):
        names = ", ".join(name for name, _ in errors)
        super().__init__(f"{len(errors)} metric provider(s) failed to shut down: {names}")
        self.errors = list(errors)
