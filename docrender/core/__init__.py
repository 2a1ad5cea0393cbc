"""
Core Business Logic
===================

Components:
- errors: Render failure taxonomy
- rendering: Template rendering, document assembly and browser automation
- storage: Request payload snapshots
"""
