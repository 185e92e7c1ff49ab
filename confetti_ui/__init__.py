"""First-party UI contracts and components for Confetti."""

from .component_schema import BoundingBox, ComponentBase, CoordinatePoint, DisplayableArea

__all__ = [
    "BoundingBox",
    "ComponentBase",
    "CoordinatePoint",
    "DisplayableArea",
]
