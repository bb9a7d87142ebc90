"""Balancing diagnostics for reward economies."""

from .checklist import ChecklistIssue, run_checklist
from .economy_simulator import EconomySimulator, SimulationResult

__all__ = ["ChecklistIssue", "run_checklist", "EconomySimulator", "SimulationResult"]
