"""Application middleware package."""

from .cors import AllowOriginMiddleware
from .logging import StructuredLoggingMiddleware
from .telemetry import TelemetryMiddleware

__all__ = ["AllowOriginMiddleware", "StructuredLoggingMiddleware", "TelemetryMiddleware"]
