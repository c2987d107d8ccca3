"""Tests for the identifier bundle."""

import pytest

from smilesdg import MoleculeIdentifiers, compute_identifiers, parse
from smilesdg.identifiers import rdkit_inchi, unavailable_text


def parse_plain(smiles: str):
    return parse(smiles, generate_coordinates=False)


def fake_inchi(smiles: str) -> tuple[str, str]:
    return f"InChI=fake/{smiles}", "FAKEKEY"


class TestComputeIdentifiers:
    """Test computing all identifiers at once."""

    def test_fields(self):
        """SMILES, isomeric SMILES and provider output are bundled."""
        ids = compute_identifiers(parse_plain("C[C@H](N)O"), fake_inchi)
        assert ids == MoleculeIdentifiers(
            smiles="C[CH](N)O",
            isomeric_smiles="C[C@H](N)O",
            inchi="InChI=fake/C[C@H](N)O",
            inchi_key="FAKEKEY",
        )

    def test_aromatic_symbols(self):
        """Both SMILES fields use aromatic symbols."""
        ids = compute_identifiers(parse_plain("c1ccccc1O"), fake_inchi)
        assert ids.smiles == "c1ccccc1O"
        assert ids.isomeric_smiles == "c1ccccc1O"

    def test_provider_failure(self):
        """A failing provider yields sentinels, not an exception."""
        def broken(smiles: str) -> tuple[str, str]:
            raise RuntimeError("offline")

        ids = compute_identifiers(parse_plain("OCC"), broken)
        assert ids.smiles == "OCC"
        assert ids.inchi == "Unavailable (offline)"
        assert ids.inchi_key == "Unavailable (offline)"

    def test_provider_failure_without_message(self):
        """An empty reason gives the bare sentinel."""
        def broken(smiles: str) -> tuple[str, str]:
            raise ValueError()

        ids = compute_identifiers(parse_plain("O"), broken)
        assert ids.inchi == "Unavailable"

    def test_frozen(self):
        """Bundles are immutable."""
        ids = compute_identifiers(parse_plain("O"), fake_inchi)
        with pytest.raises(AttributeError):
            ids.smiles = "C"


class TestUnavailableText:
    """Test the sentinel text."""

    @pytest.mark.parametrize("message,expected", [
        ("", "Unavailable"),
        ("   ", "Unavailable"),
        ("bad valence", "Unavailable (bad valence)"),
        (" padded ", "Unavailable (padded)"),
    ])
    def test_text(self, message, expected):
        """Reasons are trimmed and parenthesized."""
        assert unavailable_text(message) == expected


class TestRDKitProvider:
    """Test the default InChI provider."""

    def test_ethanol(self):
        """RDKit computes the standard InChI."""
        pytest.importorskip("rdkit")
        inchi, key = rdkit_inchi("CCO")
        assert inchi == "InChI=1S/C2H6O/c1-2-3/h3H,2H2,1H3"
        assert key == "LFQSCWFLJHTTHZ-UHFFFAOYSA-N"

    def test_default_provider(self):
        """compute_identifiers uses RDKit when no provider is given."""
        pytest.importorskip("rdkit")
        ids = compute_identifiers(parse_plain("CCO"))
        assert ids.inchi_key == "LFQSCWFLJHTTHZ-UHFFFAOYSA-N"

    def test_rejected_smiles(self):
        """SMILES RDKit cannot read raises ValueError."""
        pytest.importorskip("rdkit")
        with pytest.raises(ValueError):
            rdkit_inchi("C1CC")
