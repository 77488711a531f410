"""context-match: user-context similarity service over OpenAI and Qdrant."""

__version__ = "0.1.0"
