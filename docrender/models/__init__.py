"""
Data Models
===========

Pydantic models for render requests, artifacts and API responses.
"""
