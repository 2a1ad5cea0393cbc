"""
Test Suite
==========

Test Categories:
- unit: Component tests against fake browsers and fake HTTP sessions
- integration: HTTP contract tests through the FastAPI test client
"""
