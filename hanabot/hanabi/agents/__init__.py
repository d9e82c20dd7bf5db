"""Autonomous Hanabi players."""

from .smart_bot import SmartBot, choose_action

__all__ = ["SmartBot", "choose_action"]
