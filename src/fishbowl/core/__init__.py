"""Core domain layer: pure chess logic with zero external dependencies.

Quick start::

    from fishbowl.core import Rules, position_from_fen, STARTING_FEN

    pos = position_from_fen(STARTING_FEN)
    for move in sorted(Rules.legal_moves(pos), key=str):
        print(move)
"""

from fishbowl.core.board import Board
from fishbowl.core.enums import (
    CastlingRights,
    Color,
    GameResult,
    MoveFlag,
    OutcomeKind,
    PieceType,
)
from fishbowl.core.move import Move
from fishbowl.core.move_generator import MoveGenerator
from fishbowl.core.notation import (
    STARTING_FEN,
    move_to_san,
    parse_san,
    parse_uci_move,
    position_from_fen,
    position_to_fen,
)
from fishbowl.core.piece import Piece
from fishbowl.core.position import Position
from fishbowl.core.rules import GameOutcome, Rules
from fishbowl.core.types import (
    Square,
    file_of,
    make_square,
    parse_square,
    rank_of,
    square_name,
)

__all__ = [
    # Enums / flags
    "CastlingRights",
    "Color",
    "GameResult",
    "MoveFlag",
    "OutcomeKind",
    "PieceType",
    # Types / helpers
    "Square",
    "file_of",
    "make_square",
    "parse_square",
    "rank_of",
    "square_name",
    # Domain objects
    "Board",
    "GameOutcome",
    "Move",
    "MoveGenerator",
    "Piece",
    "Position",
    "Rules",
    # Notation
    "STARTING_FEN",
    "move_to_san",
    "parse_san",
    "parse_uci_move",
    "position_from_fen",
    "position_to_fen",
]
