"""Command line helpers for RewardForge."""

from __future__ import annotations

import argparse
import importlib
import sys
from pathlib import Path
from random import Random

from rich.console import Console
from rich.table import Table

from .app import RewardApp
from .config import RewardForgeConfig
from .diagnostics.checklist import run_checklist as checklist_run
from .diagnostics.economy_simulator import EconomySimulator
from .domain.catalog import Rarity
from .loaders import load_catalog_from_json, validate_catalog_file
from .validators import validate_app

console = Console()


def run_simulator() -> None:
    parser = argparse.ArgumentParser(description="RewardForge economy simulator")
    _add_source_arguments(parser)
    parser.add_argument("--pulls", type=int, default=1000, help="Number of draws to simulate")
    parser.add_argument("--seed", type=int, default=None, help="Seed for reproducible runs")
    args = parser.parse_args()

    app = _build_app(args)
    simulator = EconomySimulator(app, rng=Random(args.seed))
    result = simulator.simulate(pulls=args.pulls)

    table = Table(title=f"Simulated {result.pulls} draws")
    table.add_column("Rarity")
    table.add_column("Draws", justify="right")
    table.add_column("Share", justify="right")
    for rarity in sorted(Rarity, reverse=True):
        table.add_row(
            rarity.value,
            str(result.by_rarity.get(rarity.value, 0)),
            f"{result.share(rarity):.2%}",
        )
    console.print(table)
    console.print(f"Unique items: {result.uniques}, duplicates: {result.duplicates}")
    console.print(f"Pity triggered: {result.pity_triggers}")
    console.print(
        f"Tickets spent: {result.tickets_spent}, returned as duplicate bonus: "
        f"{result.tickets_returned} (net {result.net_cost})"
    )
    if result.first_complete_at is not None:
        console.print(f"Collection completed after {result.first_complete_at} draws.")


def run_checklist() -> None:
    parser = argparse.ArgumentParser(description="RewardForge sanity checks")
    _add_source_arguments(parser)
    args = parser.parse_args()

    app = _build_app(args)
    issues = checklist_run(app)
    if not issues:
        console.print("[green]No issues found.[/green]")
        return
    for issue in issues:
        console.print(f"[{issue.severity.upper()}] {issue.message}", markup=False)
    if any(issue.severity == "error" for issue in issues):
        sys.exit(1)


def run_validate() -> None:
    parser = argparse.ArgumentParser(description="RewardForge validator")
    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument(
        "--catalog",
        help="Path to catalog JSON file for validation",
    )
    group.add_argument(
        "--module",
        help="Python module with register(app) function to validate",
    )
    args = parser.parse_args()

    if args.catalog:
        errors = validate_catalog_file(Path(args.catalog))
        if errors:
            console.print("[red]Catalog errors:[/red]")
            for err in errors:
                console.print(f"- {err}", markup=False)
            sys.exit(1)
        console.print("[green]Catalog is valid.[/green]")
        return

    app = RewardApp(RewardForgeConfig.from_env())
    _load_module(args.module, app)
    issues = validate_app(app)
    if issues:
        console.print("[red]Configuration errors:[/red]")
        for issue in issues:
            console.print(f"- {issue}", markup=False)
        sys.exit(1)
    console.print("[green]Configuration is valid.[/green]")


def _add_source_arguments(parser: argparse.ArgumentParser) -> None:
    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument("--catalog", help="Path to catalog JSON file")
    group.add_argument("--module", help="Python module with register(app) function")


def _build_app(args: argparse.Namespace) -> RewardApp:
    app = RewardApp(RewardForgeConfig.from_env())
    if args.catalog:
        load_catalog_from_json(app, Path(args.catalog))
    else:
        _load_module(args.module, app)
    return app


def _load_module(path: str, app: RewardApp) -> None:
    cwd = str(Path.cwd())
    if cwd not in sys.path:
        sys.path.insert(0, cwd)
    module = importlib.import_module(path)
    if hasattr(module, "register"):
        module.register(app)
    else:
        raise RuntimeError(f"Module {path} does not define register(app).")
