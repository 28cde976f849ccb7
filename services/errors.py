"""Exceptions raised by the aggregation layer."""

from __future__ import annotations


class NeurioToolsError(Exception):
    """Base class for errors originating in this package."""


class ConfigurationError(NeurioToolsError, ValueError):
    """A required argument is missing or unusable."""


class RateNotConfiguredError(NeurioToolsError):
    """A cost was requested before a flat rate was set."""


class NoSamplesError(NeurioToolsError):
    """The sensor returned no samples to average over."""


class SensorResponseError(NeurioToolsError):
    """The sensor API answered with a payload of an unexpected shape."""
