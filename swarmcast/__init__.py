"""
SwarmCast - Core Package

Prediction-market analysis by a swarm of role-specialized LLM agents.
"""

__version__ = "0.1.0"
__author__ = "SwarmCast Team"

from swarmcast.config import settings, get_settings

__all__ = ["settings", "get_settings", "__version__"]
