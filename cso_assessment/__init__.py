"""CSO accountability self-assessment: scoring and rule-based suggestions."""

__version__ = "1.0.0"
