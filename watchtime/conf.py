from django.conf import settings

DEFAULTS = {
    "POSITION_GRACE_SECONDS": 5,
    "RATE_TOLERANCE": 1.1,
    "RATE_SLACK_SECONDS": 2,
    "STALE_SESSION_MINUTES": 30,
}


def engine_setting(name: str):
    """Read a WATCHTIME tunable, falling back to the built-in default."""
    if name not in DEFAULTS:
        raise KeyError(f"unknown WATCHTIME setting: {name}")
    return getattr(settings, "WATCHTIME", {}).get(name, DEFAULTS[name])
