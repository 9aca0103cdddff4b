"""Invoice Builder: draft model, totals engine and preview projection."""

__version__ = "0.2.0"
