"""
API Routes
==========

Route modules:
- generate: Document generation endpoints
- health: Health check endpoint
- data: Persisted payload inspection
"""
