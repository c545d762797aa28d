"""
Flask CLI commands for inspecting care state from a terminal.

Usage:
    flask care-status                       # Care state for every plant
    flask care-status --needs-action        # Only plants that need something
    flask coach-suggestions                 # Live suggestions for "today"
    flask coach-suggestions --surface analytics
"""

from __future__ import annotations

import click
from flask.cli import with_appcontext

from .constants import SUGGESTION_SURFACES
from .models import CareStatusType
from .services.care_services import get_services


@click.command("care-status")
@click.option("--needs-action", is_flag=True, default=False,
              help="Only list plants that need watering or fertilizing.")
@with_appcontext
def care_status_command(needs_action: bool) -> None:
    """Print the resolved care state for each plant."""
    services = get_services()
    plants = {p.id: p for p in services.store.list_plants()}
    if not plants:
        click.echo("No plants found.")
        return

    states = services.care_states()
    shown = 0
    for plant_id, state in states.items():
        if needs_action and state.status_type != CareStatusType.NEEDS_ACTION:
            continue
        shown += 1
        line = f"{plants[plant_id].display_name}: {state.title} - {state.subtitle}"
        if state.meta:
            line += f" ({state.meta})"
        click.echo(line)

    click.echo(f"\n{shown} of {len(states)} plant(s) shown.")


@click.command("coach-suggestions")
@click.option("--surface", default="today", show_default=True,
              type=click.Choice([s[0] for s in SUGGESTION_SURFACES]),
              help="Display context to list suggestions for.")
@with_appcontext
def coach_suggestions_command(surface: str) -> None:
    """Print live coach suggestions for a surface."""
    suggestions = get_services().suggestions(surface)
    if not suggestions:
        click.echo(f"No suggestions for '{surface}'.")
        return

    for s in suggestions:
        click.echo(f"- {s.title}: {s.message}")
        click.echo(f"    why: {s.reason} | expires {s.expires_at:%Y-%m-%d %H:%M %Z}")
