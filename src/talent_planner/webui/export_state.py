"""Export build state as JSON-safe payloads for web clients."""

from __future__ import annotations

from dataclasses import asdict
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

from talent_planner.engine.build_state import BuildState
from talent_planner.engine.ui_model import BuildUiModel
from talent_planner.models.constants import TREE_COLORS


def _number(value: Decimal) -> str:
    """Decimals travel as strings so clients never see float rounding."""
    return format(value.normalize(), "f") if value else "0"


def _tree_payload(ui: BuildUiModel, color) -> dict[str, Any]:
    return {
        "tree": ui.tree_name(color),
        "spent": ui.points_spent(color),
        "nodes": [
            {
                "index": row.index,
                "name": row.name,
                "kind": row.kind,
                "value": row.value,
                "level_cap": row.level_cap,
                "stats": list(row.stats),
                "can_increase": row.can_increase,
                "can_decrease": row.can_decrease,
            }
            for row in ui.node_rows(color)
        ],
    }


def build_state_payload(state: BuildState) -> dict[str, Any]:
    """Snapshot of the current build for rendering collaborators."""
    ui = BuildUiModel(state)
    build = state.build
    return {
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "app": {
            "title": ui.title(),
            "data_version": state.catalog.data_version,
            "max_points": state.config.max_points,
            "commanders": [
                {"id": commander_id, "name": name}
                for commander_id, name in ui.commander_choices()
            ],
        },
        "build": {
            "phase": state.phase.value,
            "commander_id": build.commander_id,
            "commander_name": ui.commander_name(),
            "data_version": build.data_version,
            "token": state.token(),
            "query": state.share_query(),
            "spent": ui.points_spent(),
            "remaining": ui.points_remaining(),
            "trees": {color.value: _tree_payload(ui, color) for color in TREE_COLORS},
            "stats": {name: _number(value) for name, value in ui.stat_rows()},
        },
        "diagnostics": [asdict(d) for d in ui.diagnostics()],
    }
