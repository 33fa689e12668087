"""
FastAPI RESTful API for the Library Books service.

This module provides a REST API for:
- Creating, updating and deleting books keyed by ISBN-13
- Fetching a single book and searching books by title
- Request validation with field-level error reports
"""
