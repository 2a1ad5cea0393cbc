"""
API Module
==========

FastAPI application, routes and exception handling.
"""
