"""Long algebraic ("UCI") move text, as spoken on the engine wire."""

from __future__ import annotations

import re
from collections.abc import Iterable

from fishbowl.core.move import Move

UCI_MOVE_RE = re.compile(r"^[a-h][1-8][a-h][1-8][nbrq]?$")


def is_uci_move_text(text: str) -> bool:
    """Syntactic check only; says nothing about legality.

    A promotion suffix is accepted only for moves onto the first or last rank.
    """
    if not UCI_MOVE_RE.match(text):
        return False
    return len(text) == 4 or text[3] in "18"


def parse_uci_move(text: str, legal_moves: Iterable[Move]) -> Move:
    """Resolve *text* (e.g. ``e7e8q``) against *legal_moves*.

    The returned move carries the generator's flags. Raises ``ValueError``
    when the text is malformed or names no legal move.
    """
    text = text.strip().lower()
    if not is_uci_move_text(text):
        raise ValueError(f"Invalid UCI move text: {text!r}")
    for move in legal_moves:
        if move.uci == text:
            return move
    raise ValueError(f"Illegal move: {text}")
