"""
LLM Provider Implementations

Providers:
    - ollama: Local Ollama server
    - openai: OpenAI-compatible APIs
"""

__all__ = []
