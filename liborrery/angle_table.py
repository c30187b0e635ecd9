"""
Per-tick body angles and the snapshot handed to renderers.

The AngleTable is the only mutable state of a running animation. It is
written by animation.tick() and nothing else; renderers read a Snapshot,
which is a detached copy.

Angles are radians and unbounded (the interpolator keeps winding rather
than wrapping); use utils.normalize_radians() for display.
"""

import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Dict, Iterator, Optional

from .constants import DEFAULT_ANGLES_DEG, CelestialBody, resolve_body


class AngleTable(Mapping):
    """
    Mapping CelestialBody -> angle in radians.

    Keys may be given as CelestialBody members or body names. Unknown keys
    raise UnknownBodyError; non-finite values are refused.
    """

    def __init__(self, angles: Optional[Dict] = None):
        self._angles: Dict[CelestialBody, float] = {}
        for body, value in (angles or {}).items():
            self[body] = value

    @classmethod
    def defaults(cls) -> "AngleTable":
        """Table with the mount-time angles of every body."""
        return cls({body: math.radians(deg) for body, deg in DEFAULT_ANGLES_DEG.items()})

    def __getitem__(self, body) -> float:
        return self._angles[resolve_body(body)]

    def __setitem__(self, body, value: float) -> None:
        body = resolve_body(body)
        value = float(value)
        if not math.isfinite(value):
            raise ValueError(f"Non-finite angle for {body.value}: {value}")
        self._angles[body] = value

    def __iter__(self) -> Iterator[CelestialBody]:
        return iter(self._angles)

    def __len__(self) -> int:
        return len(self._angles)

    def __contains__(self, body) -> bool:
        try:
            return resolve_body(body) in self._angles
        except ValueError:
            return False

    def copy(self) -> "AngleTable":
        return AngleTable(self._angles)

    def __repr__(self) -> str:
        inner = ", ".join(f"{b.value}={a:.4f}" for b, a in self._angles.items())
        return f"AngleTable({inner})"


@dataclass(frozen=True)
class Snapshot:
    """
    Read-only view of one tick for the renderer.

    Attributes:
        body_angles: CelestialBody -> angle in radians
        moon_phase_angle: Moon phase in radians (0 = new, π = full)
    """

    body_angles: Dict[CelestialBody, float] = field(default_factory=dict)
    moon_phase_angle: float = 0.0

    @classmethod
    def of(cls, table: AngleTable, moon_phase_angle: float) -> "Snapshot":
        return cls(dict(table.items()), moon_phase_angle)

    def by_name(self) -> Dict[str, float]:
        """Angles keyed by body name, for serialization."""
        return {body.value: angle for body, angle in self.body_angles.items()}
