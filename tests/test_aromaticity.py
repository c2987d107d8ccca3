"""Tests for aromatic display rings and aromatic input validation."""

from __future__ import annotations

import pytest

from smilesdg import AromaticityError, BondOrder, SmiFlavor, parse
from smilesdg.transform import (
    aromatic_display_bond_ids,
    aromatic_display_rings,
    validate_aromatic_constraints,
)


def parse_plain(smiles: str, flavor: SmiFlavor = SmiFlavor.DEFAULT):
    return parse(smiles, flavor, generate_coordinates=False)


LENIENT = SmiFlavor.DEFAULT & ~SmiFlavor.STRICT


class TestDisplayRings:
    """Test which rings are drawn aromatic."""

    def test_kekule_benzene(self):
        """Alternating single/double bonds qualify."""
        mol = parse_plain("C1=CC=CC=C1")
        assert aromatic_display_rings(mol) == [[1, 2, 3, 4, 5, 6]]

    def test_aromatic_benzene(self):
        """Lowercase atoms qualify."""
        assert len(aromatic_display_rings(parse_plain("c1ccccc1"))) == 1

    def test_aromatic_bonds_only(self):
        """A ring of ':' bonds qualifies even with uppercase atoms."""
        assert len(aromatic_display_rings(parse_plain("C1:C:C:C:C:C:1"))) == 1

    def test_cyclohexane(self):
        """Saturated rings do not qualify."""
        assert aromatic_display_rings(parse_plain("C1CCCCC1")) == []

    def test_cyclohexene(self):
        """A single double bond is not alternation."""
        assert aromatic_display_rings(parse_plain("C1=CCCCC1")) == []

    def test_cyclopentadiene(self):
        """Odd rings cannot alternate."""
        assert aromatic_display_rings(parse_plain("C1=CC=CC1")) == []

    def test_ring_size_limits(self):
        """Only 5 to 7 membered rings are considered."""
        assert aromatic_display_rings(parse_plain("C1=CC=C1")) == []
        assert aromatic_display_rings(parse_plain("C1=CC=CC=CC=C1")) == []

    def test_naphthalene(self):
        """Both rings of naphthalene, not the envelope."""
        rings = aromatic_display_rings(parse_plain("c1ccc2ccccc2c1"))
        assert sorted(len(r) for r in rings) == [6, 6]

    def test_pyrrole(self):
        """Five-membered aromatic rings qualify."""
        assert len(aromatic_display_rings(parse_plain("c1ccc[nH]1"))) == 1

    def test_molecule_method(self):
        """Molecule.aromatic_display_rings delegates."""
        mol = parse_plain("C1=CC=CC=C1")
        assert mol.aromatic_display_rings() == aromatic_display_rings(mol)


class TestDisplayBonds:
    """Test bonds drawn with aromatic styling."""

    def test_kekule_ring_bonds(self):
        """All six bonds of a Kekule ring are included."""
        mol = parse_plain("C1=CC=CC=C1C")
        ids = aromatic_display_bond_ids(mol)
        assert len(ids) == 6
        substituent = mol.bond_between(6, 7)
        assert substituent.id not in ids

    def test_isolated_aromatic_bond(self):
        """An aromatic bond outside any ring is still included."""
        mol = parse_plain("C:C")
        assert mol.aromatic_display_bond_ids() == {1}

    def test_aliphatic(self):
        """No aromatic bonds in ethanol."""
        assert aromatic_display_bond_ids(parse_plain("CCO")) == set()


class TestValidation:
    """Test rejection of impossible aromatic input."""

    @pytest.mark.parametrize("smiles", [
        "c1ccccc1",
        "c1ccncc1",
        "c1ccc[nH]1",
        "c1cccn1C",
        "c1ccoc1",
        "c1ccsc1",
        "c1cc[n-]c1",
        "c1cnc[nH]1",
        "c1cccn1c2ccc[nH]2",
        "[o+]1ccccc1",
        "*1ccccc1",
        "b1ccccc1",
    ])
    def test_valid(self, smiles):
        """Plausible aromatic systems parse."""
        assert parse_plain(smiles).num_atoms >= 5

    @pytest.mark.parametrize("smiles", [
        "c1cccn1",
        "c1cnc[n]1",
        "c1cccn1c2cccn2",
    ])
    def test_pyrrole_without_donor(self, smiles):
        """Five-membered N rings need an [nH]-like donor."""
        with pytest.raises(AromaticityError):
            parse_plain(smiles)

    @pytest.mark.parametrize("smiles", [
        "c1ccccc1#N",
        "C[c](C)(C)C",
        "Co(C)C",
    ])
    def test_invalid_atoms(self, smiles):
        """Impossible aromatic atoms fail."""
        with pytest.raises(AromaticityError):
            parse_plain(smiles)

    def test_direct_validation(self):
        """validate_aromatic_constraints can run on any molecule."""
        mol = parse_plain("c1cccn1", LENIENT)
        with pytest.raises(AromaticityError):
            validate_aromatic_constraints(mol)

    def test_no_aromatic_atoms(self):
        """Aliphatic molecules are never rejected."""
        validate_aromatic_constraints(parse_plain("C1CCCC1N"))

    def test_error_carries_smiles(self):
        """The error names the input."""
        with pytest.raises(AromaticityError) as excinfo:
            parse_plain("c1cccn1")
        assert excinfo.value.smiles == "c1cccn1"

    def test_lenient(self):
        """Without STRICT nothing is validated."""
        mol = parse_plain("c1cccn1", LENIENT)
        assert all(b.order == BondOrder.AROMATIC for b in mol.bonds)

    def test_unknown_atom_id(self):
        """Atom checks on a missing id raise the module's error."""
        from smilesdg.transform.aromaticity import _check_aromatic_atom, _is_pyrrole_type_donor

        mol = parse_plain("c1ccccc1")
        with pytest.raises(AromaticityError):
            _check_aromatic_atom(mol, 99)
        with pytest.raises(AromaticityError):
            _is_pyrrole_type_donor(mol, 99)
