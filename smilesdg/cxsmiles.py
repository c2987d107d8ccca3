"""
CXSMILES extension layer.

ChemAxon extended SMILES appends a ``|...|`` block after the SMILES text::

    C* |$;R1$|          atom labels by atom index
    C.C.O>>CCO |f:0.1|  fragment grouping by component index
    C[C@H](N)O |r|      racemic

Only the atom-label (``$...$``), racemic (``r`` / ``r:``) and fragment
grouping (``f:``) layers are interpreted; every other layer is skipped.

Example:
    >>> result = split("C* |$;R1$| methyl radical", enabled=True)
    >>> result.core, result.title, result.state.atom_labels
    ('C*', 'methyl radical', {1: 'R1'})
"""

from __future__ import annotations

import logging
import re
import sys
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Final

from smilesdg.exceptions import CxSmilesError, EmptyInputError

if TYPE_CHECKING:
    from smilesdg.types import Molecule

logger = logging.getLogger(__name__)


# Numeric character reference, e.g. "&#59;" for ';'
_ENTITY: Final[re.Pattern[str]] = re.compile(r"&#(\d+);")

# Characters that must be escaped inside a label block
_ESCAPED: Final[frozenset[str]] = frozenset({";", "$", "|", ",", "&"})

# Tokens that open a layer; anything else after r: or f: continues its list
_LAYER_START: Final[re.Pattern[str]] = re.compile(
    r"\$|\(|&\d*:|\^\d:|"
    r"(?:c|t|ctu|lp|rb|s|m|Sg|SgD|SgH|SgP|C|RG|LO|LN|o|a|w|wU|wD|H|D|r|f):|"
    r"(?:r|u)\Z"
)


@dataclass(slots=True)
class CxSmilesState:
    """Interpreted content of a CXSMILES layer block.

    Attributes:
        atom_labels: Zero-based atom index to label.
        fragment_groups: Component index groups that form one molecule.
        racemic: Bare ``r`` layer seen.
        racemic_fragments: Component indices from an ``r:`` layer.
    """

    atom_labels: dict[int, str] = field(default_factory=dict)
    fragment_groups: list[list[int]] = field(default_factory=list)
    racemic: bool = False
    racemic_fragments: list[int] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.atom_labels or self.fragment_groups or self.racemic or self.racemic_fragments)


@dataclass(frozen=True, slots=True)
class SplitResult:
    """SMILES text separated from its extension block and title."""

    core: str
    title: str | None
    state: CxSmilesState


def _find_closing_pipe(text: str, start: int) -> int:
    """Index of the first '|' at or after start that is outside a $...$ block."""
    in_labels = False
    for i in range(start, len(text)):
        ch = text[i]
        if ch == "$":
            in_labels = not in_labels
        elif ch == "|" and not in_labels:
            return i
    return -1


def split(text: str, enabled: bool = True) -> SplitResult:
    """Separate the core SMILES, the CXSMILES block and the trailing title.

    Args:
        text: Full input line.
        enabled: When False the whole trimmed text is the core.

    Returns:
        SplitResult with the core SMILES, optional title and layer state.

    Raises:
        EmptyInputError: If text is blank.
        CxSmilesError: For an unterminated block, a missing core or a
            second block in the tail.
    """
    trimmed = text.strip()
    if not trimmed:
        raise EmptyInputError()

    first = trimmed.find("|")
    if not enabled or first < 0:
        return SplitResult(core=trimmed, title=None, state=CxSmilesState())

    second = _find_closing_pipe(trimmed, first + 1)
    if second < 0:
        raise CxSmilesError("Unterminated CXSMILES layer (missing closing '|')", trimmed)

    core = trimmed[:first].strip()
    body = trimmed[first + 1:second]
    tail = trimmed[second + 1:].strip()

    if not core:
        raise CxSmilesError("Missing core SMILES before CXSMILES layer", trimmed, 0)
    if "|" in tail:
        raise CxSmilesError("Malformed CXSMILES tail", trimmed, second + 1 + trimmed[second + 1:].find("|"))

    state = parse_layers(body)
    return SplitResult(core=core, title=tail or None, state=state)


def _split_top_level(body: str) -> list[str]:
    """Split on commas outside $...$ blocks and parentheses."""
    parts: list[str] = []
    current: list[str] = []
    in_labels = False
    depth = 0

    for ch in body:
        if ch == "$":
            in_labels = not in_labels
        elif not in_labels:
            if ch == "(":
                depth += 1
            elif ch == ")":
                depth = max(0, depth - 1)
            elif ch == "," and depth == 0:
                parts.append("".join(current))
                current = []
                continue
        current.append(ch)

    parts.append("".join(current))
    return parts


def _merge_continuations(tokens: list[str]) -> list[str]:
    """Re-join comma-separated lists of the r: and f: layers.

    The list separator of these layers is the same comma that separates
    layers, so every token after an r: or f: layer continues its list
    until a token that starts a known layer.
    """
    out: list[str] = []
    in_list = False
    for token in tokens:
        token = token.strip()
        if in_list and not _LAYER_START.match(token):
            out[-1] = f"{out[-1]},{token}"
            continue
        out.append(token)
        in_list = token.startswith(("r:", "f:"))
    return out


def _split_label_entries(content: str) -> list[str]:
    """Split label block content on ';' that does not end an entity."""
    entries: list[str] = []
    start = 0
    i = 0
    while i < len(content):
        if content[i] == "&":
            match = _ENTITY.match(content, i)
            if match:
                i = match.end()
                continue
        if content[i] == ";":
            entries.append(content[start:i])
            start = i + 1
        i += 1
    entries.append(content[start:])
    return entries


def _decode_entity(match: re.Match[str]) -> str:
    code = int(match.group(1))
    if code > sys.maxunicode:
        raise CxSmilesError(f"Invalid character reference {match.group(0)!r} in CXSMILES label")
    return chr(code)


def unescape_label(label: str) -> str:
    """Decode ``&#NN;`` references.

    Raises:
        CxSmilesError: For a reference beyond the Unicode range.
    """
    return _ENTITY.sub(_decode_entity, label)


def escape_label(label: str) -> str:
    """Encode characters that would break a label block."""
    return "".join(f"&#{ord(ch)};" if ch in _ESCAPED else ch for ch in label)


def _parse_atom_labels(token: str, state: CxSmilesState) -> None:
    content = token[1:-1]
    for idx, entry in enumerate(_split_label_entries(content)):
        if not entry:
            continue
        label = unescape_label(entry)
        if label.startswith("_"):
            label = label[1:]
        state.atom_labels[idx] = label


def _parse_int_list(body: str, sep: str, layer: str) -> list[int]:
    values: list[int] = []
    for item in body.split(sep):
        item = item.strip()
        if not item:
            continue
        if not (item.isascii() and item.isdigit()):
            raise CxSmilesError(f"Malformed CXSMILES {layer} layer: {item!r}")
        values.append(int(item))
    return values


def parse_layers(body: str) -> CxSmilesState:
    """Interpret the text between the two '|' delimiters.

    Raises:
        CxSmilesError: For a malformed label, racemic or fragment layer.
    """
    state = CxSmilesState()
    if not body:
        return state

    for token in _merge_continuations(_split_top_level(body)):
        if not token:
            continue

        if token.startswith("$"):
            if len(token) < 2 or not token.endswith("$"):
                raise CxSmilesError("Malformed CXSMILES atom-label layer", token)
            _parse_atom_labels(token, state)
        elif token == "r":
            state.racemic = True
        elif token.startswith("r:"):
            listed = token[2:]
            values = _parse_int_list(listed, ",", "racemic-fragment")
            if not values and listed.strip():
                raise CxSmilesError("Malformed CXSMILES racemic-fragment layer", token)
            state.racemic_fragments = values
        elif token.startswith("f:"):
            for group in token[2:].split(","):
                if not group.strip():
                    continue
                ids = _parse_int_list(group, ".", "fragment-group")
                if not ids:
                    raise CxSmilesError("Malformed CXSMILES fragment-group layer", token)
                state.fragment_groups.append(ids)
        else:
            logger.debug("Ignoring CXSMILES layer %r", token)

    return state


def apply_atom_labels(mol: Molecule, state: CxSmilesState) -> None:
    """Replace atom symbols with CXSMILES labels, in place.

    Labels address atoms by position in ``mol.atoms``; out-of-range indices
    are skipped. A labelled atom is no longer aromatic; its position,
    charge, isotope, chirality and hydrogen count are kept.
    """
    for index, label in state.atom_labels.items():
        if not 0 <= index < len(mol.atoms):
            logger.debug("CXSMILES label %r for atom index %d out of range", label, index)
            continue
        atom = mol.atoms[index]
        atom.symbol = label
        atom.is_aromatic = False


def format_atom_labels(labels: list[str | None]) -> str:
    """Build a ``$...$`` layer from labels in atom output order.

    Example:
        >>> format_atom_labels([None, "R1"])
        '$;R1$'
    """
    return "$" + ";".join(escape_label(label) if label else "" for label in labels) + "$"
