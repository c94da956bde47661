"""
Mise - Recipe Usage Log.

Append-only (requester, recipe, timestamp) records. The planner reads
them back to avoid serving the same recipes again too soon.
"""

from datetime import datetime, timedelta, timezone
from typing import Sequence

from supabase import Client

TABLE = "recipe_usage"


class SupabaseUsageLog:
    """UsageLog backed by the recipe_usage table."""

    def __init__(self, client: Client | None = None):
        if client is None:
            from mise.db.client import get_client

            client = get_client()
        self.client = client

    async def record_usage(self, requester_id: str, recipe_ids: Sequence[str]) -> None:
        """Append one usage row per recipe id (single batch insert)."""
        if not recipe_ids:
            return

        rows = [{"user_id": requester_id, "recipe_id": rid} for rid in recipe_ids]
        self.client.table(TABLE).insert(rows).execute()

    async def recently_used(self, requester_id: str, days: int) -> list[str]:
        """Distinct recipe ids used by the requester in the last `days` days, newest first."""
        cutoff = datetime.now(timezone.utc) - timedelta(days=days)

        result = (
            self.client.table(TABLE)
            .select("recipe_id, used_at")
            .eq("user_id", requester_id)
            .gte("used_at", cutoff.isoformat())
            .order("used_at", desc=True)
            .execute()
        )

        seen: set[str] = set()
        out: list[str] = []
        for row in result.data or []:
            rid = str(row["recipe_id"])
            if rid in seen:
                continue
            seen.add(rid)
            out.append(rid)
        return out
