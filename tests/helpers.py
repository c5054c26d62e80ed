"""Shared test factories for pipeline tests.

Builds raw event records and exported documents with sensible defaults
and easy overrides.
"""


# ─── Raw Event Factory ────────────────────────────────────────────

def make_event(**overrides):
    """Build a raw event record as the scouting app stores it.

    Pass a field with value None to remove it from the record.
    """
    event = {
        "id": "ev-1",
        "type": "spike",
        "result": "point",
        "playerId": "A",
        "matchId": "m1",
        "matchName": "vs North",
    }
    event.update(overrides)
    return {k: v for k, v in event.items() if v is not None}


def make_events(n, **overrides):
    """n events with ids ev-0 .. ev-(n-1)."""
    return [make_event(id=f"ev-{i}", **overrides) for i in range(n)]


# ─── Document Factory ─────────────────────────────────────────────

def make_document(events, *, db_key="volleyPwa.db.v2", envelope=True, **extra_keys):
    """Exported document holding `events` under db[db_key]["events"].

    envelope=False returns the bare key bag (older exports).
    """
    keys = {db_key: {"events": events, "players": [], "settings": {"theme": "dark"}}}
    keys.update(extra_keys)
    if not envelope:
        return keys
    return {"format": "volley-pwa-snapshot", "exportedAt": "2025-05-01T10:00:00Z", "keys": keys}
