from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class RenderPhase(str, Enum):
    idle = "idle"
    rendering = "rendering"


@dataclass
class RenderState:
    """
    Render mutex + style-scoped bookkeeping for one map surface.

    Transitions:
    - idle -> rendering via `try_begin()` (only from idle)
    - rendering -> idle via `finish()`
    A `try_begin()` while rendering is rejected: no state change, nothing queued.

    Single event loop: `try_begin()` checks and sets without awaiting, so two callers
    cannot both win.
    """

    phase: RenderPhase = RenderPhase.idle
    pins_provisioned: bool = False
    installed_source: str | None = None
    installed_layers: list[str] = field(default_factory=list)

    @property
    def is_rendering(self) -> bool:
        return self.phase == RenderPhase.rendering

    def try_begin(self) -> bool:
        if self.phase == RenderPhase.rendering:
            return False
        self.phase = RenderPhase.rendering
        return True

    def finish(self) -> None:
        self.phase = RenderPhase.idle

    def mark_pins_provisioned(self) -> None:
        self.pins_provisioned = True

    def reset_pins(self) -> None:
        self.pins_provisioned = False

    def layer_installed(self, layer_id: str) -> None:
        if layer_id not in self.installed_layers:
            self.installed_layers.append(layer_id)

    def layer_removed(self, layer_id: str) -> None:
        if layer_id in self.installed_layers:
            self.installed_layers.remove(layer_id)
