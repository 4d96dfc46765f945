"""Audit report for finished batch runs."""
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict

from .orchestrator.models import BatchState


def build_report(state: BatchState, reason: str, admin_id: str) -> Dict[str, Any]:
    return {
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "reason": reason,
        "admin_id": admin_id,
        "mode": state.mode.value,
        "total": state.total,
        "completed": state.completed,
        "failed": state.failed,
        "remaining": state.remaining,
        "results": [result.to_dict() for result in state.results],
    }


def write_report(path: Path, state: BatchState, reason: str, admin_id: str) -> Path:
    """Write the ordered result log of a run as JSON."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as outfile:
        json.dump(build_report(state, reason, admin_id), outfile, indent=2)
        outfile.write("\n")
    return path
