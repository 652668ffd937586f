"""
Shared validation utilities for API endpoints.
"""

from fastapi import Query, Path

from app.core.database import MAX_DB_INT

# Query and path parameter dependencies for common validations
PageParam = Query(1, ge=1, le=100000, description="Page number, starting at 1")
LimitParam = Query(10, ge=1, le=100, description="Maximum items per page")
UserIdPath = Path(..., ge=1, le=MAX_DB_INT, description="User ID")
DocumentIdPath = Path(..., ge=1, le=MAX_DB_INT, description="Edition document ID")
ArticleIdPath = Path(..., ge=1, le=MAX_DB_INT, description="Article ID")
EditionKeyParam = Query(
    None,
    max_length=16,
    description="Edition key override, e.g. 2025-04-06_18:00",
)
