"""gws.export — Machine-readable status reports (JSON / YAML)."""

from __future__ import annotations

import json
from typing import Any

import yaml

from gws.git.provider import RepositoryStatus


def status_report(statuses: list[RepositoryStatus]) -> dict[str, Any]:
    """Summary counters plus one entry per repository."""
    repositories = []
    for s in statuses:
        entry = s.to_dict()
        if entry["error"] is None:
            del entry["error"]
        if not entry["branch"]:
            del entry["branch"]
        repositories.append(entry)

    return {
        "total": len(statuses),
        "clean": sum(1 for s in statuses if s.exists and s.clean and s.error is None),
        "changed": sum(1 for s in statuses if s.exists and not s.clean),
        "missing": sum(1 for s in statuses if not s.exists),
        "errors": sum(1 for s in statuses if s.error is not None),
        "repositories": repositories,
    }


def format_statuses(statuses: list[RepositoryStatus], fmt: str) -> str:
    """Render statuses as "json" or "yaml"."""
    report = status_report(statuses)
    if fmt == "json":
        return json.dumps(report, indent=2)
    if fmt == "yaml":
        return yaml.dump(report, default_flow_style=False, sort_keys=False).rstrip("\n")
    raise ValueError(f"Unsupported format: '{fmt}'. Expected 'json' or 'yaml'")
