"""Middleware package for the application."""

from rules_service.middleware.request_id import RequestIDMiddleware

__all__ = ["RequestIDMiddleware"]
