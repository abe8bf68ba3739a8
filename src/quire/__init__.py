"""quire: incremental static site builder for AsciiDoc books."""

__version__ = "0.1.0"
