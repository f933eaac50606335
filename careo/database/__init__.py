"""
Database package for Careo medication rounds

This package provides composition-based database operations for clean
architecture and type safety.

Usage:
    from careo.database import async_db
    from careo.database.order_repository import PostgresOrderRepository

    # Initialize services with proper dependency injection
    repository = PostgresOrderRepository(async_db, settings.facility_timezone)
"""

# Composition-based database classes
from .core import AsyncDatabase

# Create shared database instance
async_db = AsyncDatabase()

__all__ = ["AsyncDatabase", "async_db"]
