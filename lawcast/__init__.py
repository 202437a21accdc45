"""LawCast: legislative notice change detection and webhook fan-out."""

__version__ = "1.0.0"
