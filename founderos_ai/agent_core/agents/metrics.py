from __future__ import annotations

"""Workspace aggregates shared by the fundraising and traction agents."""

from typing import Any, Dict, List, Optional


def _number(value: Any) -> float:
    try:
        return float(value or 0)
    except (TypeError, ValueError):
        return 0.0


def total_raised(funding_rounds: List[Dict[str, Any]]) -> float:
    """Sum of ``amount_raised`` over closed rounds."""
    return sum(_number(r.get("amount_raised")) for r in funding_rounds if r.get("status") == "closed")


def raising_round(funding_rounds: List[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    return next((r for r in funding_rounds if r.get("status") == "raising"), None)


def marketing_summary(platforms: List[Dict[str, Any]]) -> Dict[str, Any]:
    reach = sum(int(_number(p.get("reach"))) for p in platforms)
    engagement = sum(_number(p.get("engagement_rate")) for p in platforms) / len(platforms) if platforms else 0.0
    return {"totalReach": reach, "avgEngagement": engagement, "platformCount": len(platforms)}


def equity_split(team_members: List[Dict[str, Any]]) -> Dict[str, float]:
    founders = sum(_number(m.get("equity_percent")) for m in team_members if m.get("role") == "Founder")
    others = sum(_number(m.get("equity_percent")) for m in team_members if m.get("role") != "Founder")
    return {"founder": founders, "employee": others, "total": founders + others}


def task_counts(roadmap_items: List[Dict[str, Any]]) -> Dict[str, int]:
    return {
        "completed": sum(1 for i in roadmap_items if i.get("status") == "done"),
        "inProgress": sum(1 for i in roadmap_items if i.get("status") == "in_progress"),
        "total": len(roadmap_items),
    }
