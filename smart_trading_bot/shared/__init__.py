"""
Smart Trading Bot Shared Module
Constants and metrics shared by the bot and the control server
"""

from .constants import *
from .metrics import BotMetrics
