"""Remote service adapters (Gemini) and attachment handling."""

from .classifier import Analysis, GeminiClassifier

__all__ = ["Analysis", "GeminiClassifier"]
