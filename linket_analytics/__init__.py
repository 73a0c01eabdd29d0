"""
Linket Analytics Backend Package.

FastAPI service layer that turns raw Linket scan, lead and conversion events
into per-tenant analytics reports.

Subpackages:
    - api: FastAPI route handlers
    - core: Configuration, database, dependencies and errors
    - models: Pydantic schemas and enums
    - services: Report aggregation services
    - sql: Parameterized SQL queries
"""

__version__ = "1.0.0"
