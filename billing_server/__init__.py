"""
Billing API Server Package

This package provides a FastAPI server for invoice management,
backed by a single PostgreSQL table and gated by JWT authentication.
"""

__version__ = "1.0.0"
__author__ = "Billing Team"
