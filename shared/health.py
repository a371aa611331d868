"""In-memory health component registry for the readiness endpoints."""

from __future__ import annotations

import time
from typing import Dict, Mapping

__all__ = [
    "components_snapshot",
    "overall_ready",
    "reset",
    "set_component",
]

# runtime: web server up; discord: gateway connected; cfc: relay cog loaded.
REQUIRED_COMPONENTS = frozenset({"runtime", "discord", "cfc"})

_components: Dict[str, bool] = {}
_updated_at: Dict[str, float] = {}


def set_component(name: str, ok: bool) -> None:
    """Record the health of a component and timestamp the update."""

    _components[name] = bool(ok)
    _updated_at[name] = time.time()


def components_snapshot() -> dict[str, Mapping[str, float | bool]]:
    """Return every known or required component with its state and timestamp."""

    names = set(_components) | set(REQUIRED_COMPONENTS)
    return {
        name: {"ok": _components.get(name, False), "ts": _updated_at.get(name, 0.0)}
        for name in sorted(names)
    }


def overall_ready() -> bool:
    """Return ``True`` when every required component is marked healthy."""

    return all(_components.get(name, False) for name in REQUIRED_COMPONENTS)


def reset() -> None:
    _components.clear()
    _updated_at.clear()
