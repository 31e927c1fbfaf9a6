from __future__ import annotations

from typing import Any

from settings.types import ClusterSettings, ClusterStyle, HeatmapStyle, PinStyle

SOURCE_ID = "reports-source"

CLUSTER_GLOW_LAYER_ID = "cluster-glow"
CLUSTER_LAYER_ID = "clusters"
CLUSTER_COUNT_LAYER_ID = "cluster-count"
MARKER_LAYER_ID = "unclustered-point"

# Install order = paint order (later sits on top).
INSTALL_ORDER = [
    CLUSTER_GLOW_LAYER_ID,
    CLUSTER_LAYER_ID,
    CLUSTER_COUNT_LAYER_ID,
    MARKER_LAYER_ID,
]
# Teardown runs top-down, and always before the source is removed.
TEARDOWN_ORDER = list(reversed(INSTALL_ORDER))

HEATMAP_SOURCE_ID = "heatmap-source"
HEATMAP_LAYER_ID = "heatmap-layer"

PIN_REPORTED = "pin-reported"
PIN_RECOVERED = "pin-recovered"
PIN_PENDING = "pin-pending"

HAS_POINT_COUNT: list[Any] = ["has", "point_count"]

ICON_IMAGE_EXPR: list[Any] = [
    "case",
    ["get", "isResolved"],
    PIN_RECOVERED,
    ["get", "isPending"],
    PIN_PENDING,
    PIN_REPORTED,
]


def source_spec(feature_collection: dict[str, Any], cluster: ClusterSettings) -> dict[str, Any]:
    return {
        "type": "geojson",
        "data": feature_collection,
        "cluster": True,
        "clusterRadius": int(cluster.radius),
        "clusterMaxZoom": int(cluster.maxZoom),
    }


def cluster_layers(style: ClusterStyle) -> list[dict[str, Any]]:
    """
    Glow -> core circle -> count label, all restricted to cluster features.
    """
    return [
        {
            "id": CLUSTER_GLOW_LAYER_ID,
            "type": "circle",
            "source": SOURCE_ID,
            "filter": HAS_POINT_COUNT,
            "paint": {
                "circle-color": style.color,
                "circle-opacity": style.glowOpacity,
                "circle-radius": style.glowRadius,
                "circle-blur": 1.0,
            },
        },
        {
            "id": CLUSTER_LAYER_ID,
            "type": "circle",
            "source": SOURCE_ID,
            "filter": HAS_POINT_COUNT,
            "paint": {
                "circle-color": style.color,
                "circle-radius": style.radius,
                "circle-stroke-width": style.strokeWidth,
                "circle-stroke-color": style.strokeColor,
            },
        },
        {
            "id": CLUSTER_COUNT_LAYER_ID,
            "type": "symbol",
            "source": SOURCE_ID,
            "filter": HAS_POINT_COUNT,
            "layout": {
                "text-field": "{point_count_abbreviated}",
                "text-size": style.textSize,
            },
            "paint": {"text-color": style.textColor},
        },
    ]


def marker_layer(pins: PinStyle) -> dict[str, Any]:
    # icon-image is set afterwards via set_layer_property (per-feature case expression).
    return {
        "id": MARKER_LAYER_ID,
        "type": "symbol",
        "source": SOURCE_ID,
        "filter": ["!", HAS_POINT_COUNT],
        "layout": {
            "icon-allow-overlap": True,
            "icon-ignore-placement": True,
            "icon-size": pins.iconSize,
            "icon-anchor": "bottom",
        },
    }


# Transparent at zero density for soft edges, red at the peak.
HEATMAP_COLOR_EXPR: list[Any] = [
    "interpolate",
    ["linear"],
    ["heatmap-density"],
    0,
    "rgba(33, 102, 172, 0)",
    0.2,
    "rgb(103, 169, 207)",
    0.4,
    "rgb(209, 229, 240)",
    0.6,
    "rgb(253, 219, 199)",
    0.8,
    "rgb(239, 138, 98)",
    1,
    "rgb(178, 24, 43)",
]

# Wide and intense when zoomed out so sparse reports still show up globally.
HEATMAP_RADIUS_EXPR: list[Any] = [
    "interpolate", ["linear"], ["zoom"], 0, 2, 1, 4, 3, 10, 6, 20, 10, 30, 15, 40,
]
HEATMAP_INTENSITY_EXPR: list[Any] = [
    "interpolate", ["linear"], ["zoom"], 0, 3, 3, 2, 6, 1.5, 10, 1,
]
HEATMAP_WEIGHT_EXPR: list[Any] = ["get", "weight"]


def heatmap_source_spec(feature_collection: dict[str, Any]) -> dict[str, Any]:
    return {"type": "geojson", "data": feature_collection}


def heatmap_layer(style: HeatmapStyle) -> dict[str, Any]:
    return {
        "id": HEATMAP_LAYER_ID,
        "type": "heatmap",
        "source": HEATMAP_SOURCE_ID,
        "maxzoom": style.maxZoom,
        "paint": {
            "heatmap-color": HEATMAP_COLOR_EXPR,
            "heatmap-radius": HEATMAP_RADIUS_EXPR,
            "heatmap-intensity": HEATMAP_INTENSITY_EXPR,
            "heatmap-weight": HEATMAP_WEIGHT_EXPR,
            "heatmap-opacity": style.opacity,
        },
    }
