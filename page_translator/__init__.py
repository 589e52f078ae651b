"""
Translate HTML pages with an LLM while keeping their markup intact.
"""

__version__ = "1.0.0"
