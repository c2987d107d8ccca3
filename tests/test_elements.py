"""Tests for element data and enumerations."""

import pytest

from smilesdg.elements import (
    AROMATIC_SUBSET,
    ORGANIC_SUBSET,
    BondOrder,
    BondStereo,
    Element,
    canonical_symbol,
    get_atomic_number,
    is_aromatic_symbol,
    is_element_symbol,
    is_organic_symbol,
    preferred_valence,
)


class TestElement:
    """Test Element class."""

    def test_carbon(self):
        """Carbon element lookup."""
        elem = Element.from_symbol("C")
        assert elem is not None
        assert elem.symbol == "C"
        assert elem.atomic_number == 6

    def test_chlorine(self):
        """Chlorine (two-letter) element lookup."""
        elem = Element.from_symbol("Cl")
        assert elem is not None
        assert elem.atomic_number == 17

    def test_from_atomic_number(self):
        """Lookup element by atomic number."""
        assert Element.from_atomic_number(6).symbol == "C"
        assert Element.from_atomic_number(118).symbol == "Og"
        assert Element.from_atomic_number(0) is None

    def test_invalid_symbol(self):
        """Invalid symbol should return None."""
        assert Element.from_symbol("Xx") is None

    def test_lowercase_lookup(self):
        """Lowercase aromatic symbol lookup."""
        assert Element.from_symbol("c").atomic_number == 6
        assert Element.from_symbol("se").atomic_number == 34


class TestSubsets:
    """Test organic and aromatic subset constants."""

    def test_organic_subset(self):
        """Organic subset holds the bracket-free elements."""
        assert ORGANIC_SUBSET == {"B", "C", "N", "O", "P", "S", "F", "Cl", "Br", "I"}

    def test_aromatic_subset(self):
        """Aromatic subset is lowercase."""
        assert all(s == s.lower() for s in AROMATIC_SUBSET)
        assert {"c", "n", "o", "s", "se", "as"} <= AROMATIC_SUBSET


class TestHelperFunctions:
    """Test element helper functions."""

    @pytest.mark.parametrize("symbol,number", [
        ("H", 1), ("C", 6), ("cl", 17), ("Fe", 26), ("*", 0), ("R1", 0),
    ])
    def test_get_atomic_number(self, symbol, number):
        """Atomic numbers, 0 for wildcards and labels."""
        assert get_atomic_number(symbol) == number

    def test_canonical_symbol(self):
        """Capitalization is normalized; labels pass through."""
        assert canonical_symbol("se") == "Se"
        assert canonical_symbol("BR") == "Br"
        assert canonical_symbol("R1") == "R1"
        assert canonical_symbol("*") == "*"

    def test_is_element_symbol(self):
        """Element check is case sensitive."""
        assert is_element_symbol("Co")
        assert not is_element_symbol("co")
        assert not is_element_symbol("*")

    def test_is_organic_symbol(self):
        """Organic subset membership, aromatic forms included."""
        assert is_organic_symbol("C")
        assert is_organic_symbol("c")
        assert not is_organic_symbol("Fe")

    def test_is_aromatic_symbol(self):
        """Lowercase aromatic symbols only."""
        assert is_aromatic_symbol("c")
        assert not is_aromatic_symbol("C")

    @pytest.mark.parametrize("symbol,charge,aromatic,valence", [
        ("C", 0, False, 4.0),
        ("C", 0, True, 3.0),
        ("N", 0, False, 3.0),
        ("N", 1, False, 4.0),
        ("N", 1, True, 3.0),
        ("O", 0, False, 2.0),
        ("O", 1, False, 3.0),
        ("O", -1, False, 1.0),
        ("S", 1, False, 3.0),
        ("P", 1, False, 4.0),
        ("B", 0, False, 3.0),
        ("Br", 0, False, 1.0),
        ("Fe", 0, False, 0.0),
    ])
    def test_preferred_valence(self, symbol, charge, aromatic, valence):
        """Preferred valence table."""
        assert preferred_valence(symbol, charge, aromatic) == valence


class TestEnumerations:
    """Test bond enumerations."""

    def test_valence_contribution(self):
        """Aromatic bonds count 1.5."""
        assert [o.valence_contribution for o in BondOrder] == [1.0, 2.0, 3.0, 1.5]

    def test_bond_order_str(self):
        """Bond orders print in lowercase."""
        assert str(BondOrder.AROMATIC) == "aromatic"

    @pytest.mark.parametrize("code,stereo", [
        (0, BondStereo.NONE), (1, BondStereo.UP), (4, BondStereo.EITHER), (6, BondStereo.DOWN),
    ])
    def test_from_molfile(self, code, stereo):
        """Molfile stereo codes map to markers."""
        assert BondStereo.from_molfile(code) == stereo

    def test_directional(self):
        """EITHER and NONE are not directional."""
        assert BondStereo.UP_REVERSED.is_directional
        assert not BondStereo.EITHER.is_directional
        assert not BondStereo.NONE.is_directional
