"""Render brain diagnostics as rich tables."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich import box
from rich.console import Console
from rich.table import Table

if TYPE_CHECKING:
    from softbrain.brain.controller import BrainDiagnostics


def build_summary_table(diagnostics: BrainDiagnostics) -> Table:
    """Topology and training counters."""
    table = Table(title="Brain", box=box.SQUARE, show_header=False)
    table.add_column("Field", style="bold")
    table.add_column("Value", justify="right")
    table.add_row(
        "Topology (in/hidden/out)",
        f"{diagnostics.input_size}/{diagnostics.hidden_size}/{diagnostics.output_size}",
    )
    table.add_row("Topology version", str(diagnostics.topology_version))
    table.add_row("Buffer resets", str(diagnostics.buffer_resets))
    table.add_row("Buffer", f"{diagnostics.buffer_length}/{diagnostics.buffer_capacity}")
    table.add_row("Frames since train", str(diagnostics.frames_since_train))
    table.add_row("Last avg reward", f"{diagnostics.last_avg_reward:.4f}")
    return table


def build_inputs_table(diagnostics: BrainDiagnostics) -> Table:
    """Labeled input vector of the last tick."""
    table = Table(title="Inputs", box=box.SIMPLE)
    table.add_column("#", justify="right")
    table.add_column("Sensor")
    table.add_column("Value", justify="right")
    for i, entry in enumerate(diagnostics.inputs):
        table.add_row(str(i), entry.label, f"{entry.value:.3f}")
    return table


def build_actions_table(diagnostics: BrainDiagnostics) -> Table:
    """Sampled actions of the last tick."""
    table = Table(title="Actions", box=box.SIMPLE)
    table.add_column("Action")
    table.add_column("Mean", justify="right")
    table.add_column("Std", justify="right")
    table.add_column("Sample", justify="right")
    table.add_column("Log prob", justify="right")
    for action in diagnostics.actions:
        table.add_row(
            action.label,
            f"{action.mean:.3f}",
            f"{action.std_dev:.3f}",
            f"{action.sampled_value:.3f}",
            f"{action.log_prob:.3f}",
        )
    return table


def render_diagnostics(diagnostics: BrainDiagnostics, console: Console | None = None) -> None:
    """Print the summary, inputs and actions tables."""
    console = console or Console()
    console.print(build_summary_table(diagnostics))
    if diagnostics.inputs:
        console.print(build_inputs_table(diagnostics))
    if diagnostics.actions:
        console.print(build_actions_table(diagnostics))
