"""
Smart Trading Bot
Simulated trading bot fusing technical indicators into trading signals
"""

__version__ = "2.0.0"
__author__ = "Anhbaza"
__created_at__ = "2025-06-02 09:14:51"
