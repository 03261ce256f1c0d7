import os

_TRUTHY = {"1", "true", "yes", "on"}


def env_flag(name: str) -> bool:
    """Return ``True`` when environment variable ``name`` holds a truthy value."""

    return os.environ.get(name, "").strip().lower() in _TRUTHY


__all__ = ["env_flag"]
