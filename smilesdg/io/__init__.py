"""Reading and writing chemistry files."""

from smilesdg.io.smiles import SmilesReader, SmilesWriter

__all__ = [
    "SmilesReader",
    "SmilesWriter",
]
