"""
Line-oriented SMILES files.

One structure per line, optionally followed by whitespace and a name::

    # comment
    c1ccccc1O phenol
    C* |$;R1$| methyl radical

Blank lines and lines starting with ``#`` or ``//`` are skipped.

Example:
    >>> reader = SmilesReader.from_string("CCO ethanol\\n\\n# skipped\\nC methane\\n")
    >>> [m.name for m in reader]
    ['ethanol', 'methane']
"""

from __future__ import annotations

import io
import logging
import os
from typing import TYPE_CHECKING, Final, Iterable, Iterator, TextIO

from smilesdg.exceptions import EmptyInputError, ParseError
from smilesdg.flavor import SmiFlavor
from smilesdg.parser import SmilesParser
from smilesdg.writer import SmilesGenerator

if TYPE_CHECKING:
    from smilesdg.types import Molecule

logger = logging.getLogger(__name__)


_COMMENT_PREFIXES: Final[tuple[str, ...]] = ("#", "//")

# Flavor used when writing files
WRITER_FLAVOR: Final[SmiFlavor] = SmiFlavor.USE_AROMATIC_SYMBOLS | SmiFlavor.STRICT


class SmilesReader:
    """Read molecules from a SMILES file.

    Args:
        source: File path or open text stream.
        flavor: Parser options.
        generate_coordinates: Lay out each molecule after parsing.

    Iterating yields molecules lazily and stops at the first malformed
    line with its ParseError.
    """

    def __init__(
        self,
        source: str | os.PathLike[str] | TextIO,
        flavor: SmiFlavor = SmiFlavor.DEFAULT,
        generate_coordinates: bool = True,
    ) -> None:
        self.source = source
        self.parser = SmilesParser(flavor, generate_coordinates)

    @classmethod
    def from_string(
        cls,
        text: str,
        flavor: SmiFlavor = SmiFlavor.DEFAULT,
        generate_coordinates: bool = True,
    ) -> "SmilesReader":
        """Reader over SMILES file content held in memory."""
        return cls(io.StringIO(text), flavor, generate_coordinates)

    def _lines(self) -> Iterator[str]:
        if isinstance(self.source, (str, os.PathLike)):
            with open(self.source, encoding="utf-8") as f:
                yield from f
        else:
            yield from self.source

    def __iter__(self) -> Iterator[Molecule]:
        for lineno, raw in enumerate(self._lines(), start=1):
            line = raw.strip()
            if not line or line.startswith(_COMMENT_PREFIXES):
                if line:
                    logger.debug("Skipping comment on line %d", lineno)
                continue
            try:
                yield self.parser.parse_smiles(line)
            except ParseError:
                logger.debug("Invalid SMILES on line %d: %r", lineno, line)
                raise

    def read_all(self) -> list[Molecule]:
        """Read every molecule.

        Raises:
            EmptyInputError: If the source holds no SMILES line.
            ParseError: For the first malformed line.
        """
        molecules = list(self)
        if not molecules:
            raise EmptyInputError("No SMILES found in input")
        return molecules


class SmilesWriter:
    """Write molecules as SMILES lines.

    Args:
        flavor: Generator options; aromatic symbols without stereo by
            default.

    Example:
        >>> from smilesdg import parse
        >>> SmilesWriter().write([parse("OCC ethanol", generate_coordinates=False)])
        'OCC ethanol\\n'
    """

    def __init__(self, flavor: SmiFlavor = WRITER_FLAVOR) -> None:
        self.generator = SmilesGenerator(flavor)

    def write(self, molecules: Iterable[Molecule]) -> str:
        """Render molecules as ``"smiles name"`` lines.

        Names have line breaks replaced by spaces; a molecule with an
        empty name is written as the SMILES alone.

        Raises:
            EmptyInputError: If there are no molecules.
        """
        lines = []
        for mol in molecules:
            smiles = self.generator.create(mol).strip()
            if not smiles:
                raise EmptyInputError(f"Molecule {mol.name!r} has no atoms")
            name = _normalized_name(mol.name)
            lines.append(f"{smiles} {name}" if name else smiles)

        if not lines:
            raise EmptyInputError("No molecules to write")
        return "\n".join(lines) + "\n"

    def write_file(self, molecules: Iterable[Molecule], path: str | os.PathLike[str]) -> None:
        """Write molecules to a file, replacing its content."""
        text = self.write(molecules)
        with open(path, "w", encoding="utf-8") as f:
            f.write(text)


def _normalized_name(name: str | None) -> str:
    if not name:
        return ""
    return name.replace("\r", " ").replace("\n", " ").strip()
