"""Output formatters for reconcile reports."""

import json

from rich.console import Console
from rich.markup import escape
from rich.text import Text
from rich.tree import Tree

from endpointsync.models import ReconcileAction, ReconcileReport, ReconcileResult

ACTION_COLORS = {
    ReconcileAction.NONE: "green",
    ReconcileAction.CREATE: "yellow",
    ReconcileAction.UPDATE: "yellow",
    ReconcileAction.DELETE: "red",
}


def _state(result: ReconcileResult) -> str | None:
    obs = result.observation
    if obs is None or obs.observed is None:
        return None
    return obs.observed.state


def format_json(report: ReconcileReport) -> str:
    """Format a report as JSON."""
    resources = []
    for r in sorted(report.results, key=lambda r: r.name):
        obs = r.observation
        resources.append(
            {
                "name": r.name,
                "external_name": r.external_name,
                "action": r.action.value,
                "applied": r.applied,
                "exists": obs.resource_exists if obs else None,
                "up_to_date": obs.resource_up_to_date if obs else None,
                "state": _state(r),
                "ready": r.ready,
                "connection_details": obs.connection_details if obs else {},
                "error": r.error,
            }
        )

    return json.dumps(
        {
            "summary": {
                "total": len(report.results),
                "in_sync": sum(1 for r in report.results if r.in_sync),
                "failed": sorted(report.failed),
            },
            "resources": resources,
        },
        indent=2,
    )


def format_table(report: ReconcileReport) -> str:
    """Format a report as a Rich tree view, returned as a string."""
    if not report.results:
        return "No VPC endpoints reconciled."

    console = Console(record=True, width=120)
    tree = Tree("[bold]VPC Endpoint Reconcile[/bold]")

    for r in sorted(report.results, key=lambda r: r.name):
        color = "bold red" if r.error else ACTION_COLORS.get(r.action, "dim")
        verb = r.action.value
        if r.action != ReconcileAction.NONE and not r.applied:
            verb += " (planned)"
        name = escape(r.name)
        bound = escape(r.external_name or "not created")
        branch = tree.add(Text.from_markup(f"[{color}]{name}[/{color}] ({bound}) — {verb}"))
        state = _state(r)
        if state:
            branch.add(f"state: {state}")
        if r.ready:
            branch.add(f"ready: {r.ready}")
        if r.observation is not None:
            for key, value in r.observation.connection_details.items():
                branch.add(Text(f"{key}: {value}"))
        if r.error:
            branch.add(Text(f"error: {r.error}", style="red"))

    console.print(tree)
    return console.export_text()
