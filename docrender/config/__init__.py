"""
Configuration
=============

- settings: ``DOCRENDER_*`` environment settings for the server, browser and renderer
- logging: structlog setup and request scoped log context
"""
