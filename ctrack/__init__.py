"""Connection tracking entries: attributes, parsing, labels and formatting."""

__version__ = "0.1.0"