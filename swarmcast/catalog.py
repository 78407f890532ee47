"""
SwarmCast - Role Catalog

Fixed, ordered catalog of specialist roles available to the swarm.
Loaded once at import time and never mutated.
"""

from __future__ import annotations

from swarmcast.models import AgentRole, RoleCatalogEntry


AVAILABLE_AGENTS: tuple[RoleCatalogEntry, ...] = (
    RoleCatalogEntry(
        role=AgentRole.NEWSFEED,
        description="Scans global headlines and breaking news.",
        icon="📰",
        color="from-blue-500 to-cyan-400",
    ),
    RoleCatalogEntry(
        role=AgentRole.SOCIAL_MEDIA,
        description="Analyzes sentiment on X/Twitter and viral trends.",
        icon="🐦",
        color="from-sky-500 to-indigo-500",
    ),
    RoleCatalogEntry(
        role=AgentRole.REDDIT,
        description="Deep dives into niche communities and contrarian views.",
        icon="🤖",
        color="from-orange-500 to-red-500",
    ),
    RoleCatalogEntry(
        role=AgentRole.FINANCE,
        description="Reviews market data, earnings, and economic indicators.",
        icon="📈",
        color="from-emerald-500 to-green-400",
    ),
    RoleCatalogEntry(
        role=AgentRole.MACRO,
        description="Considers geopolitical events and large-scale trends.",
        icon="🌍",
        color="from-purple-500 to-pink-500",
    ),
    RoleCatalogEntry(
        role=AgentRole.ENTERTAINMENT,
        description="Tracks celebrity influence and pop culture shifts.",
        icon="🎭",
        color="from-yellow-400 to-amber-500",
    ),
)


def available_roles(
    catalog: tuple[RoleCatalogEntry, ...] = AVAILABLE_AGENTS,
) -> list[AgentRole]:
    """Roles in catalog order."""
    return [entry.role for entry in catalog]


def get_entry(
    role: AgentRole,
    catalog: tuple[RoleCatalogEntry, ...] = AVAILABLE_AGENTS,
) -> RoleCatalogEntry:
    """Look up the catalog entry for a role."""
    for entry in catalog:
        if entry.role == role:
            return entry
    raise KeyError(f"Role not in catalog: {role}")
