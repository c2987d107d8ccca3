"""2D coordinate generation for structure diagrams."""

from smilesdg.layout.sdg import (
    LayoutConfig,
    StructureDiagramGenerator,
    generate_coordinates,
    needs_layout,
)

__all__ = [
    "LayoutConfig",
    "StructureDiagramGenerator",
    "generate_coordinates",
    "needs_layout",
]
