"""Tests for SMILES file reading and writing."""

import io

import pytest

from smilesdg import EmptyInputError, ParseError, parse
from smilesdg.io import SmilesReader, SmilesWriter


SMILES_FILE = """\
# building blocks
CCO ethanol

// aromatic
c1ccccc1O phenol
C* |$;R1$| methyl radical
[Na+].[Cl-]
"""


class TestSmilesReader:
    """Test reading SMILES lines."""

    def test_skips_comments_and_blanks(self):
        """Comment and blank lines produce no molecules."""
        mols = SmilesReader.from_string(SMILES_FILE, generate_coordinates=False).read_all()
        assert [m.name for m in mols] == ["ethanol", "phenol", "methyl radical", "Untitled"]

    def test_cxsmiles_lines(self):
        """Extension blocks are applied per line."""
        mols = list(SmilesReader.from_string(SMILES_FILE, generate_coordinates=False))
        assert mols[2].atoms[1].symbol == "R1"

    def test_read_path(self, tmp_path):
        """A path is opened and read."""
        path = tmp_path / "input.smi"
        path.write_text(SMILES_FILE, encoding="utf-8")
        mols = SmilesReader(path, generate_coordinates=False).read_all()
        assert len(mols) == 4

    def test_read_str_path(self, tmp_path):
        """A string is treated as a file name."""
        path = tmp_path / "input.smi"
        path.write_text("C methane\n", encoding="utf-8")
        assert SmilesReader(str(path)).read_all()[0].name == "methane"

    def test_read_stream(self):
        """Open text streams are read line by line."""
        mols = SmilesReader(io.StringIO("CC\nCCC\n"), generate_coordinates=False).read_all()
        assert [m.num_atoms for m in mols] == [2, 3]

    def test_coordinates_by_default(self):
        """Molecules are laid out unless asked otherwise."""
        (mol,) = SmilesReader.from_string("CCO\n").read_all()
        assert mol.has_coordinates

    def test_lazy(self):
        """Iteration stops at the first bad line, after yielding earlier ones."""
        reader = SmilesReader.from_string("CC\nC1CC\nCCC\n", generate_coordinates=False)
        it = iter(reader)
        assert next(it).num_atoms == 2
        with pytest.raises(ParseError):
            next(it)

    def test_empty(self):
        """A file with only comments is empty input."""
        with pytest.raises(EmptyInputError):
            SmilesReader.from_string("# nothing\n\n").read_all()


class TestSmilesWriter:
    """Test writing SMILES lines."""

    def test_write(self):
        """One line per molecule, name after a space."""
        mols = [
            parse("OCC ethanol", generate_coordinates=False),
            parse("c1ccccc1", generate_coordinates=False),
        ]
        assert SmilesWriter().write(mols) == "OCC ethanol\nc1ccccc1 Untitled\n"

    def test_no_stereo_by_default(self):
        """The default flavor leaves out chirality."""
        text = SmilesWriter().write([parse("C[C@H](N)O x", generate_coordinates=False)])
        assert "@" not in text

    def test_multiline_name(self):
        """Line breaks in names become spaces."""
        mol = parse("C", generate_coordinates=False)
        mol.name = "two\nlines"
        assert SmilesWriter().write([mol]) == "C two lines\n"

    def test_empty_name(self):
        """A molecule without a name is written alone."""
        mol = parse("C", generate_coordinates=False)
        mol.name = ""
        assert SmilesWriter().write([mol]) == "C\n"

    def test_empty_list(self):
        """Nothing to write is an error."""
        with pytest.raises(EmptyInputError):
            SmilesWriter().write([])

    def test_write_file_round_trip(self, tmp_path):
        """Written files read back to the same structures."""
        path = tmp_path / "out.smi"
        mols = SmilesReader.from_string(SMILES_FILE, generate_coordinates=False).read_all()
        SmilesWriter().write_file(mols, path)
        again = SmilesReader(path, generate_coordinates=False).read_all()
        assert [m.num_atoms for m in again] == [m.num_atoms for m in mols]
        assert [m.name for m in again] == [m.name for m in mols]
