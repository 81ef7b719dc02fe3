"""Application-level exception types for convotree."""

from __future__ import annotations


class ConvotreeError(Exception):
    """Base exception for convotree."""


class ConfigurationError(ConvotreeError):
    """Raised for configuration and startup validation errors."""


class StepGraphError(ConvotreeError):
    """Raised when a step graph is malformed."""


class EmptyBuilderError(StepGraphError):
    """Raised when compiling a builder that has no steps."""


class UnknownConversationError(ConvotreeError):
    """Raised when a conversation name is not registered with the dispatcher."""
