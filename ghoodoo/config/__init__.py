"""Configuration for the webhook bridge.

Key Components:
    - GhoodooSettings: Environment/YAML settings container
    - OdooConfig: Odoo client configuration built from the settings
    - StageConfig: done / in-progress / canceled stage targets

Example:
    >>> from ghoodoo.config import GhoodooSettings
    >>> settings = GhoodooSettings.from_env()
    >>> settings.stages.done
    5
"""

from ghoodoo.config.settings import GhoodooSettings, OdooConfig, StageConfig, StageRef, UserMapping

__all__ = ["GhoodooSettings", "OdooConfig", "StageConfig", "StageRef", "UserMapping"]
