from .identifier_classifier import classify_identifier

__all__ = ["classify_identifier"]
