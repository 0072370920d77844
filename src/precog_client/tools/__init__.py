# Precog Client
# File: tools/__init__.py
# Version: v2

"""MCP tools exposing the Precog client operations."""

from __future__ import annotations

from . import tasks

__all__ = ["tasks"]
