"""Custom exceptions for smilesdg."""

from __future__ import annotations


class ChemError(Exception):
    """Base exception for chemistry-related errors."""
    pass


class EmptyInputError(ChemError):
    """No content to parse at all."""

    def __init__(self, message: str = "No input provided") -> None:
        super().__init__(message)


class UnsupportedError(ChemError):
    """A recognized construct or request that is not handled."""
    pass


class ParseError(ChemError):
    """Malformed syntax in SMILES, CXSMILES or reaction SMILES."""

    def __init__(self, message: str, smiles: str | None = None, position: int | None = None):
        self.message = message
        self.smiles = smiles
        self.position = position

        if smiles is not None and position is not None:
            super().__init__(f"{message}\n  {smiles}\n  {' ' * position}^")
        elif smiles is not None:
            super().__init__(f"{message} in: {smiles}")
        else:
            super().__init__(message)


class RingError(ParseError):
    """Invalid or unterminated ring closure."""

    def __init__(
        self,
        message: str,
        ring_index: int | None = None,
        smiles: str | None = None,
        position: int | None = None,
    ):
        self.ring_index = ring_index
        super().__init__(message, smiles, position)


class AromaticityError(ParseError):
    """Aromatic atom or ring that cannot be aromatic as written."""
    pass


class CxSmilesError(ParseError):
    """Malformed CXSMILES extension layer."""
    pass


class ReactionSyntaxError(ParseError):
    """Malformed reaction SMILES (separators, sides, fragment groups)."""
    pass
