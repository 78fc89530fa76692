from __future__ import annotations

from domain.models import LEADERBOARD_SORT_KEYS


def encode_leaderboard(sort_by: str, limit: int) -> str:
    """
    Encode a "switch leaderboard sort" callback.

    Format: lb:{sort_by}:{limit}
    """

    return f"lb:{sort_by}:{limit}"


def parse_leaderboard(data: str) -> tuple[str, int]:
    parts = data.split(":")
    if len(parts) != 3 or parts[0] != "lb" or parts[1] not in LEADERBOARD_SORT_KEYS:
        raise ValueError(f"Invalid leaderboard callback data: {data}")

    sort_by = parts[1]
    limit = int(parts[2])
    if limit < 1:
        raise ValueError(f"Invalid leaderboard callback data: {data}")
    return sort_by, limit
