"""Pydantic schemas for request and response validation."""

from .base import ActionResponse, APIResponse, PaginatedResponse, Pagination

__all__ = ["ActionResponse", "APIResponse", "PaginatedResponse", "Pagination"]
