"""Configuration module.

See models.py for the complete list of environment variables.
"""

from sqlscope.config.models import (
    IntrospectionConfig,
    PaginationPolicy,
    Settings,
    get_settings,
)

__all__ = [
    "IntrospectionConfig",
    "PaginationPolicy",
    "Settings",
    "get_settings",
]
