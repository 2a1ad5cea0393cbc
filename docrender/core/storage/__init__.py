"""
Storage Module
==============

Persisted request payload snapshots with a retention policy.
"""
