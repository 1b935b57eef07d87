"""
RuneAgent - LLM-powered assistant for the RuneLite Old School RuneScape client.

This package provides a bounded tool-use conversation loop: the model can
inspect and change client plugins and settings, read player stats, and look
things up on the OSRS Wiki while answering a question.
"""

__version__ = "0.1.0"
