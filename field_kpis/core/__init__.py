"""
Core infrastructure package for the technician KPI pipeline.

Provides configuration management via pydantic-settings. Re-exported here so
other modules can simply write:

    from field_kpis.core import get_settings
"""

from field_kpis.core.config import Settings, get_settings

__all__ = [
    'Settings',
    'get_settings',
]
