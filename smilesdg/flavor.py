"""
SMILES flavor options.

A flavor is a bit set passed explicitly to parsers and generators; there is
no process-wide default object to configure.

    >>> from smilesdg import SmiFlavor
    >>> SmiFlavor.DEFAULT & SmiFlavor.STRICT
    <SmiFlavor.STRICT: 4>
"""

from __future__ import annotations

from enum import IntFlag


class SmiFlavor(IntFlag):
    """Parsing and generation options."""

    NONE = 0
    # Read/write lowercase aromatic atoms and implicit aromatic bonds
    USE_AROMATIC_SYMBOLS = 1 << 0
    # Chirality tags and directional bonds
    ISOMERIC = 1 << 1
    # Reject malformed decorators and invalid aromatic rings
    STRICT = 1 << 2
    # Split off and apply the trailing |...| extension layer
    CXSMILES = 1 << 3

    DEFAULT = USE_AROMATIC_SYMBOLS | ISOMERIC | STRICT | CXSMILES
