"""
Utility Modules

Configuration loading utilities.
"""

from community_topology.utils.config import load_config, Config

__all__ = ["load_config", "Config"]
