"""
SwarmCast - Run Analysis

Streams one market analysis run to the console.

Usage:
    python scripts/run_analysis.py "Will Bitcoin hit $100k in 2024?"
    python scripts/run_analysis.py "Will it rain in Paris tomorrow?" --mode staggered
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from agents.controller import SwarmController  # noqa: E402
from swarmcast.config import get_settings  # noqa: E402
from swarmcast.logging import setup_logging  # noqa: E402
from swarmcast.models import MarketAnalysis, RunStatus  # noqa: E402


STATUS_MARKS = {
    "selected": "·",
    "analyzing": "…",
    "completed": "✓",
}


def render(snapshot: MarketAnalysis) -> None:
    """Print one snapshot."""
    print(f"─── {snapshot.status.value.upper()} ───")
    for agent in snapshot.agents:
        mark = STATUS_MARKS[agent.status.value]
        line = f"  {mark} {agent.icon} {agent.role.value:<14} {agent.status.value}"
        if agent.findings is not None:
            f = agent.findings
            line += f"  → {f.prediction.value} ({f.confidence_score}%)"
        print(line)


def render_consensus(snapshot: MarketAnalysis) -> None:
    consensus = snapshot.final_consensus
    if consensus is None:
        return
    print()
    print("═" * 50)
    print(f"  P(YES): {consensus.probability}%")
    for i, reason in enumerate(consensus.top_reasons, start=1):
        print(f"  {i}. {reason}")
    print(f"  Verdict: {consensus.verdict}")
    print("═" * 50)


async def main(topic: str, url: str | None, mode: str | None) -> int:
    settings = get_settings()
    config = settings.swarm
    if mode:
        config = config.model_copy(update={"execution_mode": mode})

    controller = SwarmController(config=config)
    last = controller.snapshot
    async for snapshot in controller.run(topic, url=url):
        render(snapshot)
        last = snapshot

    render_consensus(last)
    return 0 if last.status == RunStatus.CONSENSUS else 1


def cli() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="SwarmCast prediction-market analysis",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("topic", help="Market question to analyze")
    parser.add_argument("--url", default=None, help="Optional market URL (not validated)")
    parser.add_argument(
        "--mode",
        choices=["parallel", "staggered"],
        default=None,
        help="Agent execution strategy (defaults to SWARM_EXECUTION_MODE)",
    )
    args = parser.parse_args()

    if not args.topic.strip():
        parser.error("topic must not be empty")

    setup_logging()

    print()
    print("╔════════════════════════════════════════════╗")
    print("║     SwarmCast Market Analysis              ║")
    print("╚════════════════════════════════════════════╝")
    print(f"  Topic: {args.topic}")
    print()

    sys.exit(asyncio.run(main(args.topic, args.url, args.mode)))


if __name__ == "__main__":
    cli()
