"""Notation package: FEN / SAN / long algebraic parsing and serialization."""

from fishbowl.core.notation.fen import STARTING_FEN, position_from_fen, position_to_fen
from fishbowl.core.notation.san import move_to_san, parse_san
from fishbowl.core.notation.uci import is_uci_move_text, parse_uci_move

__all__ = [
    "STARTING_FEN",
    "position_from_fen",
    "position_to_fen",
    "move_to_san",
    "parse_san",
    "is_uci_move_text",
    "parse_uci_move",
]
