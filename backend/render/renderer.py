from __future__ import annotations

import logging
from typing import Any, Callable, Sequence

from markers.geojson import build_feature_collection
from markers.types import MapMarkerData
from render.layers import (
    ICON_IMAGE_EXPR,
    MARKER_LAYER_ID,
    SOURCE_ID,
    TEARDOWN_ORDER,
    cluster_layers,
    marker_layer,
    source_spec,
)
from render.pins import generate_all_pins
from render.state import RenderState
from settings.registry import get_settings
from settings.types import MapSettings, PinStyle
from surface.types import MapSurface, NotFoundError, StyleImage

logger = logging.getLogger(__name__)

PinFactory = Callable[[PinStyle], dict[str, StyleImage]]


class MarkerRenderer:
    """
    Owns the marker source and its cluster/marker layers on one map surface.

    At most one render is in flight: a call that arrives mid-render returns False without
    doing anything (the next camera/data event brings a fresh request anyway).
    """

    def __init__(
        self,
        surface: MapSurface,
        *,
        settings: MapSettings | None = None,
        pin_factory: PinFactory = generate_all_pins,
    ):
        self._surface = surface
        self._settings = settings or get_settings()
        self._pin_factory = pin_factory
        self.state = RenderState()

    @property
    def is_rendering(self) -> bool:
        return self.state.is_rendering

    async def render_markers(self, markers: Sequence[MapMarkerData]) -> bool:
        """
        Replace whatever is on the map with `markers` (empty = clear the map).

        Returns True when the map reflects `markers`, False when skipped (render in
        progress) or failed. A failure leaves the partial state as-is; the next
        render's teardown cleans it up.
        """
        if not self.state.try_begin():
            logger.debug("Already rendering markers, skipping")
            return False

        try:
            logger.info("Setting up clustering for %d markers", len(markers))
            await self.clear_layers()

            if not markers:
                logger.info("No markers to display, cleared map")
                return True

            fc = build_feature_collection(markers)
            await self._surface.add_source(SOURCE_ID, source_spec(fc, self._settings.cluster))
            self.state.installed_source = SOURCE_ID

            for layer in cluster_layers(self._settings.clusterStyle):
                await self._add_layer(layer)

            await self._ensure_pin_images()
            await self._add_layer(marker_layer(self._settings.pins))
            await self._surface.set_layer_property(MARKER_LAYER_ID, "icon-image", ICON_IMAGE_EXPR)

            logger.info("Clustering layers set up for %d markers", len(markers))
            return True
        except Exception:
            logger.exception("Error setting up clustering layers")
            return False
        finally:
            self.state.finish()

    async def clear_layers(self) -> None:
        """
        Remove marker layers, then the source. Missing ids are fine (idempotent).
        """
        for layer_id in TEARDOWN_ORDER:
            try:
                await self._surface.remove_layer(layer_id)
            except NotFoundError:
                pass
            self.state.layer_removed(layer_id)

        try:
            await self._surface.remove_source(SOURCE_ID)
        except NotFoundError:
            pass
        self.state.installed_source = None

    def reset_pin_images(self) -> None:
        """
        Forget provisioned pin images. Call after the surface style was replaced:
        images are style-scoped and do not survive a style switch.
        """
        self.state.reset_pins()

    async def _add_layer(self, layer: dict[str, Any]) -> None:
        await self._surface.add_layer(layer)
        self.state.layer_installed(str(layer["id"]))

    async def _ensure_pin_images(self) -> None:
        if self.state.pins_provisioned:
            return
        for image_id, image in self._pin_factory(self._settings.pins).items():
            await self._surface.add_image(image_id, image)
        self.state.mark_pins_provisioned()
        logger.info("Pin marker images added to style")
