"""Aromaticity, hydrogen and stereo passes over a parsed molecule."""

from smilesdg.transform.aromaticity import (
    aromatic_display_rings,
    aromatic_display_bond_ids,
    validate_aromatic_constraints,
)
from smilesdg.transform.hydrogen import (
    implicit_hydrogen_count,
    total_hydrogens,
    add_explicit_hydrogens,
    remove_explicit_hydrogens,
)
from smilesdg.transform.stereo import (
    assign_wedge_hash,
    annotate_directional_double_bonds,
    wedge_clearance,
)

__all__ = [
    "aromatic_display_rings",
    "aromatic_display_bond_ids",
    "validate_aromatic_constraints",
    "implicit_hydrogen_count",
    "total_hydrogens",
    "add_explicit_hydrogens",
    "remove_explicit_hydrogens",
    "assign_wedge_hash",
    "annotate_directional_double_bonds",
    "wedge_clearance",
]
