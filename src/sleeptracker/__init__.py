"""Sleep session tracking: tonight's recording and the stored history."""

__version__ = "0.1.0"
