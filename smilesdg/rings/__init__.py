"""Ring detection and analysis."""

from smilesdg.rings.detection import (
    canonical_cycle,
    cycle_edges,
    cycle_rank,
    edge_key,
    find_ring_systems,
    find_sssr,
    simple_cycles,
)

__all__ = [
    "canonical_cycle",
    "cycle_edges",
    "cycle_rank",
    "edge_key",
    "find_ring_systems",
    "find_sssr",
    "simple_cycles",
]
