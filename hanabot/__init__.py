"""Hanabi rule engine with belief-tracking bots."""
