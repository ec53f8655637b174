"""Request and storage instrumentation."""

from .middleware import AccessLogMiddleware, MetricsMiddleware
from .tracking import track_operation, tracked

__all__ = ["AccessLogMiddleware", "MetricsMiddleware", "track_operation", "tracked"]
