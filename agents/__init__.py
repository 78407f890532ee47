"""
SwarmCast - Agent Swarm Package

Three-stage prediction-market analysis pipeline:
    - AgentOrchestrator:  picks 3-6 specialist roles for the topic
    - AgentAnalyst:       one web-search-augmented analysis per role
    - ConsensusEngine:    fuses all findings into a probability and verdict

SwarmController sequences the stages and streams state snapshots.

Usage:
    from agents.controller import SwarmController, run_market_analysis
"""

from agents.analyst import AgentAnalyst
from agents.consensus import ConsensusEngine
from agents.controller import SwarmController, run_market_analysis
from agents.orchestrator import AgentOrchestrator
from agents.state import InvalidTransition, initial_state, reduce

__all__ = [
    "AgentAnalyst",
    "AgentOrchestrator",
    "ConsensusEngine",
    "InvalidTransition",
    "SwarmController",
    "initial_state",
    "reduce",
    "run_market_analysis",
]
