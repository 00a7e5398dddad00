"""
FastAPI backend for the prediction tracker.

This package contains the REST API layer: schemas (Pydantic DTOs),
services, routes, middleware, and error handling.
"""
