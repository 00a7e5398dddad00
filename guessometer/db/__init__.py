"""
Persistence layer.

Async SQLAlchemy models and session management for users, predictions,
social data, and the derived per-user stats table.
"""
