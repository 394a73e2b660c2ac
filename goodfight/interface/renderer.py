"""
Display and rendering helpers for the Good Fight CLI.

Renders GameState and engine results. Nothing here changes state.
"""

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..state.schema import GameState, INFLUENCE_MAX, HEAT_MAX, VICTORY_LATE_GAME_OPS
from ..state.schemas import OperationPreview, OperationResult, RecruitResult, TurnResult
from ..state.schemas.action import RequirementStatus

# Shared console instance
console = Console()

THEME = {
    "primary": "steel_blue",
    "secondary": "grey70",
    "warning": "dark_goldenrod",
    "danger": "dark_red",
    "accent": "cyan",
    "success": "green",
    "dim": "dim",
}


def meter(value: int, maximum: int, width: int = 20) -> str:
    """Text bar for a clamped resource."""
    filled = round(width * value / maximum) if maximum else 0
    return "█" * filled + "░" * (width - filled)


def heat_color(heat: int) -> str:
    if heat >= 70:
        return THEME["danger"]
    if heat >= 40:
        return THEME["warning"]
    return THEME["accent"]


def show_status(state: GameState | None, slot: str | None = None):
    """Show resources, personnel and opportunities."""
    if state is None:
        console.print(f"[{THEME['dim']}]No game loaded[/{THEME['dim']}]")
        return

    title = f"Turn {state.current_turn}"
    if slot:
        title += f" · {slot}"
    table = Table(
        title=f"[bold {THEME['primary']}]{title}[/bold {THEME['primary']}]",
        show_header=False,
        box=None,
    )
    table.add_column("Key", style=THEME["dim"])
    table.add_column("Value", style=THEME["secondary"])

    hc = heat_color(state.heat)
    table.add_row("Influence", f"{meter(state.influence, INFLUENCE_MAX)} {state.influence}")
    table.add_row("Heat", f"[{hc}]{meter(state.heat, HEAT_MAX)} {state.heat}[/{hc}]")
    table.add_row("Supplies", f"{state.supplies}")
    table.add_row("Leader skill", f"{state.leader_skill_level}")
    table.add_row("Deck", f"{len(state.recruit_deck)} cards")
    if state.resistance_values:
        table.add_row("Fighting for", ", ".join(state.resistance_values))
    if state.regime_type:
        table.add_row("Against", ", ".join(state.regime_type))
    console.print(table)

    personnel = Table(title="Personnel", box=None)
    personnel.add_column("Group", style=THEME["dim"])
    personnel.add_column("Cards")
    personnel.add_row(
        "Pool",
        " ".join(f"[{i}]{c.label}" for i, c in enumerate(state.recruit_pool)) or "-",
    )
    personnel.add_row(
        "Initiates",
        " ".join(f"{t.card.label}({t.turns_remaining})" for t in state.initiates) or "-",
    )
    operatives = []
    for op in state.operatives:
        if op.assignment:
            operatives.append(f"[{THEME['warning']}]{op.card.label}*[/{THEME['warning']}]")
        elif op.tapped:
            operatives.append(f"[{THEME['dim']}]{op.card.label}[/{THEME['dim']}]")
        else:
            operatives.append(op.card.label)
    personnel.add_row("Operatives", " ".join(operatives) or "-")
    personnel.add_row(
        "Detained",
        " ".join(f"{t.card.label}({t.turns_remaining})" for t in state.detained_operatives) or "-",
    )
    console.print(personnel)

    if state.multi_turn_ops:
        for mop in state.multi_turn_ops:
            console.print(
                f"  [{THEME['warning']}]{mop.operation.value}[/{THEME['warning']}] "
                f"{mop.turns_remaining} turn(s) left, {len(mop.assigned_operatives)} assigned"
            )

    console.print(
        f"[{THEME['dim']}]Opportunities:[/{THEME['dim']}] "
        f"{len(state.available_mid_game_ops)} mid, {len(state.available_late_game_ops)} late · "
        f"Late-game ops complete: {len(state.completed_late_game_ops)}/{VICTORY_LATE_GAME_OPS}"
    )


def show_preview(preview: OperationPreview):
    """Requirement checklist for an operation."""
    lines = []
    for req in preview.requirements:
        if req.status == RequirementStatus.MET:
            mark = f"[{THEME['success']}]✓[/{THEME['success']}]"
        else:
            mark = f"[{THEME['danger']}]✗[/{THEME['danger']}]"
        lines.append(f"{mark} {req.label} [{THEME['dim']}]{req.detail}[/{THEME['dim']}]")
    body = "\n".join(lines) or "No requirements"
    style = THEME["success"] if preview.feasible else THEME["danger"]
    console.print(Panel(body, title=preview.operation.value, border_style=style))


def show_events(events):
    for entry in events:
        console.print(f"  [{THEME['dim']}]T{entry.turn}[/{THEME['dim']}] {entry.text}")


def show_recruit_result(result: RecruitResult):
    color = THEME["success"] if result.success else THEME["warning"]
    console.print(
        f"[{color}]{'Recruited' if result.success else 'Not recruited'}[/{color}] "
        f"{result.card}: {result.total} vs {result.target}"
    )
    show_events(result.events)


def show_operation_result(result: OperationResult):
    if result.pending:
        console.print(f"[{THEME['accent']}]{result.operation.value} started[/{THEME['accent']}]")
    else:
        color = THEME["success"] if result.success else THEME["danger"]
        verdict = "succeeded" if result.success else "failed"
        console.print(f"[{color}]{result.operation.value} {verdict}[/{color}]")
    show_events(result.events)


def show_turn_result(result: TurnResult):
    console.print(Panel(
        "\n".join(str(e) for e in result.events) or "Quiet turn.",
        title=f"End of turn {result.turn_ended}",
        border_style=THEME["danger"] if result.crackdown.triggered else THEME["primary"],
    ))
    if result.victory:
        console.print(Panel(
            "Three late-game operations complete. The regime falls.",
            title="VICTORY",
            border_style=THEME["success"],
        ))


def show_saves(slots: list[str]):
    if not slots:
        console.print(f"[{THEME['dim']}]No saved games[/{THEME['dim']}]")
        return
    for i, slot in enumerate(slots, 1):
        console.print(f"  {i}. {slot}")
