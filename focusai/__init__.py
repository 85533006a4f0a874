"""FocusAI focus session companion."""

__version__ = "0.1.0"
