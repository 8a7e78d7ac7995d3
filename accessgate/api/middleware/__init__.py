from accessgate.api.middleware.logging import StructuredLoggingMiddleware, setup_logging

__all__ = ["StructuredLoggingMiddleware", "setup_logging"]
