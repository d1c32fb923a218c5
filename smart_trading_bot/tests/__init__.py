"""
Smart Trading Bot Test Suite
Contains unit tests for the analyzers, position lifecycle, services and bot
"""

# Test module information
__version__ = "2.0.0"
__author__ = "Anhbaza"
__created_at__ = "2025-06-02 09:14:51"
