#!/usr/bin/env python3
"""Run the headless playtest against a balance document."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
import sys
from typing import Sequence

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from cultivation.balance import load_balance
from cultivation.simulation import SimulationResult, simulate
from cultivation.stages import StageCostModel
from cultivation.models.realms import DEFAULT_LADDER

# (label, clicks per second, hours)
DEFAULT_CASES: tuple[tuple[str, float, float], ...] = (
    ("Casual", 2.0, 10.0),
    ("Normal", 3.0, 10.0),
    ("Dedicated", 5.0, 10.0),
    ("Normal-12h", 3.0, 12.0),
)


def describe(label: str, click_rate: float, result: SimulationResult) -> str:
    if result.finished:
        status = f"FINISHED in {result.time_hours:.2f}h"
    else:
        status = f"NOT finished ({result.realm} {result.stage}/10)"
    return (
        f"{label:<10} | cps={click_rate:g} | {status} | "
        f"reinc={result.reincarnations} karma={result.karma:.1f}"
    )


def plot_results(results: Sequence[tuple[str, SimulationResult]], output_path: Path) -> None:
    import matplotlib.pyplot as plt

    fig, ax = plt.subplots(figsize=(10, 5), dpi=150)
    for label, result in results:
        hours = [point.hours for point in result.timeline]
        progress = [point.realm_index + (point.stage - 1) / 10 for point in result.timeline]
        ax.plot(hours, progress, label=label)
    ax.set_xlabel("Hours played")
    ax.set_ylabel("Realm (stage fraction)")
    ax.set_yticks(range(len(DEFAULT_LADDER)))
    ax.set_yticklabels([realm.name for realm in DEFAULT_LADDER], fontsize=7)
    ax.grid(alpha=0.3)
    ax.legend(loc="lower right", frameon=False)
    fig.tight_layout()
    output_path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(output_path, bbox_inches="tight")
    plt.close(fig)


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--balance", type=Path, default=None, help="Balance document (JSON or TOML).")
    parser.add_argument("--dt", type=float, default=0.1, help="Simulated seconds per step.")
    parser.add_argument("--buy-every", type=float, default=0.25, help="Seconds between purchases.")
    parser.add_argument("--hours", type=float, default=None, help="Override the hours of every case.")
    parser.add_argument(
        "--plot",
        type=Path,
        default=None,
        help="Write a progression chart of every case to this image path.",
    )
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    balance = load_balance(args.balance, len(DEFAULT_LADDER))
    for diagnostic in balance.diagnostics:
        print(f"balance fix: {diagnostic}")
    violations = StageCostModel(balance.stage_requirement, len(DEFAULT_LADDER)).check_monotonic()
    if violations:
        print(f"stage cost curve has {len(violations)} ordering violation(s)")

    sr = balance.stage_requirement
    print("=== Xianxia Idle Full-Run Playtest ===")
    print(
        f"realmBase={sr.realm_base} realmBaseScale={sr.realm_base_scale} "
        f"stageScale={sr.stage_scale}"
    )

    results: list[tuple[str, SimulationResult]] = []
    for label, click_rate, hours in DEFAULT_CASES:
        result = simulate(
            balance,
            hours=args.hours if args.hours is not None else hours,
            click_rate=click_rate,
            dt=args.dt,
            buy_every=args.buy_every,
        )
        results.append((label, result))
        print(describe(label, click_rate, result))

    if args.plot is not None:
        plot_results(results, args.plot)
        print(f"wrote {args.plot}")


if __name__ == "__main__":
    main()
