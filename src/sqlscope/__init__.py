"""SQL validation, read-only gating, pagination rewriting and schema introspection."""

__version__ = "0.1.0"
