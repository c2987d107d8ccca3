"""Tests for wedge/hash assignment and directional double bonds."""

from __future__ import annotations

import pytest

from smilesdg import BondOrder, BondStereo, Chirality, Molecule, SmiFlavor, parse
from smilesdg.transform import (
    annotate_directional_double_bonds,
    assign_wedge_hash,
    wedge_clearance,
)


def directional_bonds(mol: Molecule):
    return [b for b in mol.bonds if b.stereo.is_directional]


class TestWedgeAssignment:
    """Test picking one wedge or hash per stereocenter."""

    def test_one_wedge_after_layout(self, chiral_smiles):
        """Every chiral atom gets exactly one directional bond."""
        for smiles in chiral_smiles:
            mol = parse(smiles)
            centers = [a.id for a in mol.atoms if a.is_chiral]
            for center in centers:
                marked = [
                    b for b in mol.bonds_for_atom(center)
                    if b.stereo.is_directional
                ]
                assert len(marked) == 1, smiles

    def test_hash_for_anticlockwise(self):
        """@ centers get a hash bond."""
        mol = parse("C[C@H](N)O")
        (bond,) = directional_bonds(mol)
        assert bond.stereo in (BondStereo.DOWN, BondStereo.DOWN_REVERSED)

    def test_wedge_for_clockwise(self):
        """@@ centers get a wedge bond."""
        mol = parse("C[C@@H](N)O")
        (bond,) = directional_bonds(mol)
        assert bond.stereo in (BondStereo.UP, BondStereo.UP_REVERSED)

    def test_narrow_end_on_center(self):
        """The REVERSED variant is used when the center is the second atom."""
        mol = parse("C[C@@H](N)O")
        (bond,) = directional_bonds(mol)
        if bond.atom1_id == 2:
            assert bond.stereo == BondStereo.UP
        else:
            assert bond.atom2_id == 2
            assert bond.stereo == BondStereo.UP_REVERSED

    def test_tie_breaks_on_bond_id(self):
        """Without coordinates the lowest bond id wins."""
        mol = parse("C[C@H](N)O", generate_coordinates=False)
        assert mol.bonds[0].stereo == BondStereo.DOWN_REVERSED
        assert len(directional_bonds(mol)) == 1

    def test_center_as_first_atom(self):
        """A center written first gets the plain variant."""
        mol = parse("[C@@H](C)(N)O", generate_coordinates=False)
        assert mol.bonds[0].stereo == BondStereo.UP

    def test_terminal_preferred(self):
        """A terminal neighbor beats a chain neighbor."""
        mol = parse("CC[C@H](N)CC")
        (bond,) = directional_bonds(mol)
        other = bond.other_atom(3)
        assert mol.degree(other) == 1
        assert mol.atom(other).symbol == "N"

    def test_ring_bonds_used_when_needed(self):
        """A center with only ring bonds still gets a wedge."""
        mol = parse("C1C[C@@]2(CC1)CCCC2")
        assert len(directional_bonds(mol)) == 1

    def test_no_chirality(self):
        """Achiral molecules get no wedges."""
        assert directional_bonds(parse("CC(N)O")) == []

    def test_non_isomeric(self):
        """Dropped chirality means no wedges."""
        flavor = SmiFlavor.USE_AROMATIC_SYMBOLS | SmiFlavor.STRICT
        assert directional_bonds(parse("C[C@H](N)O", flavor)) == []

    def test_existing_marker_skipped(self):
        """Bonds that already carry a marker are not reused."""
        mol = parse("C[C@H](N)O", generate_coordinates=False)
        assign_wedge_hash(mol)
        assert len(directional_bonds(mol)) == 2

    def test_molecule_method(self):
        """Molecule.assign_wedge_hash delegates."""
        mol = Molecule()
        c = mol.add_atom("C", chirality=Chirality.CLOCKWISE)
        f = mol.add_atom("F", position=(1.4, 0.0))
        mol.add_bond(c, f)
        mol.assign_wedge_hash()
        assert mol.bonds[0].stereo == BondStereo.UP


class TestWedgeClearance:
    """Test the crowding score."""

    def test_degenerate(self):
        """Coincident atoms score zero."""
        mol = parse("CC", generate_coordinates=False)
        assert wedge_clearance(mol, mol.bonds[0], 1) == 0.0

    def test_no_other_atoms(self):
        """With nothing else around the score is zero."""
        mol = parse("CC")
        assert wedge_clearance(mol, mol.bonds[0], 1) == 0.0

    def test_open_side_scores_higher(self):
        """A neighbor pointing away from the crowd scores higher."""
        mol = Molecule()
        center = mol.add_atom("C", position=(0.0, 0.0))
        crowded = mol.add_atom("C", position=(1.0, 0.0))
        open_ = mol.add_atom("C", position=(-1.0, 0.0))
        mol.add_atom("C", position=(1.8, 0.3))
        mol.add_atom("C", position=(1.8, -0.3))
        to_crowded = mol.bonds[mol.add_bond(center, crowded) - 1]
        to_open = mol.bonds[mol.add_bond(center, open_) - 1]
        assert wedge_clearance(mol, to_open, center) > wedge_clearance(mol, to_crowded, center)


class TestDirectionalDoubleBonds:
    """Test flagging stereo double bonds."""

    def test_both_ends(self):
        """Directional bonds on both ends flag the double bond."""
        mol = parse("F/C=C/F", generate_coordinates=False)
        assert mol.bonds[1].stereo == BondStereo.EITHER

    @pytest.mark.parametrize("smiles", ["FC=CF", "F/C=CF", "FC=C/F"])
    def test_missing_end(self, smiles):
        """One or no directional bond leaves the double bond alone."""
        mol = parse(smiles, generate_coordinates=False)
        assert mol.bonds[1].stereo == BondStereo.NONE

    def test_conjugated(self):
        """Each double bond of a diene is judged separately."""
        mol = parse("F/C=C/C=C/F", generate_coordinates=False)
        doubles = [b for b in mol.bonds if b.order == BondOrder.DOUBLE]
        assert [b.stereo for b in doubles] == [BondStereo.EITHER, BondStereo.EITHER]

    def test_in_place(self):
        """The pass mutates the molecule it is given."""
        mol = Molecule()
        a = mol.add_atom("F")
        b = mol.add_atom("C")
        c = mol.add_atom("C")
        d = mol.add_atom("F")
        mol.add_bond(a, b, stereo=BondStereo.UP)
        mol.add_bond(b, c, order=BondOrder.DOUBLE)
        mol.add_bond(c, d, stereo=BondStereo.DOWN)
        annotate_directional_double_bonds(mol)
        assert mol.bonds[1].stereo == BondStereo.EITHER
