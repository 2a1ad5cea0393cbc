"""
Test Utilities
==============

Fakes shared by the test suite.
"""

from .mocks import *
