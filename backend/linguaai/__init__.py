"""LinguaAI language-learning API."""

__version__ = "1.0.0"
