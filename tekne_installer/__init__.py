"""Tekne host installer (Python-first, profile-driven).

Core design goals:
- One immutable host profile resolved up front
- Strictly ordered, fail-fast phases
- Operator confirmation before any block device is touched
- Idempotent role repository sync
- Centralized logging
"""

__all__ = []
