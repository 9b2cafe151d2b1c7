"""SAN (Standard Algebraic Notation) conversion and parsing."""

from __future__ import annotations

from collections.abc import Sequence

from fishbowl.core.enums import MoveFlag, PieceType
from fishbowl.core.move import Move
from fishbowl.core.move_generator import MoveGenerator
from fishbowl.core.position import Position
from fishbowl.core.types import file_of, parse_square, rank_of, square_name

_SAN_PIECE: dict[PieceType, str] = {pt: pt.letter.upper() for pt in PieceType if pt != PieceType.PAWN}
_SAN_PIECE_REV: dict[str, PieceType] = {v: k for k, v in _SAN_PIECE.items()}
_CASTLES: dict[str, MoveFlag] = {
    "O-O": MoveFlag.CASTLE_KINGSIDE,
    "0-0": MoveFlag.CASTLE_KINGSIDE,
    "O-O-O": MoveFlag.CASTLE_QUEENSIDE,
    "0-0-0": MoveFlag.CASTLE_QUEENSIDE,
}


def move_to_san(position: Position, move: Move, legal: Sequence[Move] | None = None) -> str:
    """Convert a legal *move* to SAN given the *position* before the move.

    *legal* may carry the already generated legal moves for *position*.
    The position is left unchanged.
    """
    board = position.board
    piece = board[move.from_sq]
    if piece is None:
        raise ValueError(f"No piece on {square_name(move.from_sq)}")

    if move.flag == MoveFlag.CASTLE_KINGSIDE:
        san = "O-O"
    elif move.flag == MoveFlag.CASTLE_QUEENSIDE:
        san = "O-O-O"
    else:
        is_capture = board[move.to_sq] is not None or move.flag == MoveFlag.EN_PASSANT
        if piece.piece_type == PieceType.PAWN:
            san = square_name(move.from_sq)[0] if is_capture else ""
        else:
            if legal is None:
                legal = MoveGenerator(position).generate_legal_moves()
            san = _SAN_PIECE[piece.piece_type] + _disambiguation(position, move, legal)
        if is_capture:
            san += "x"
        san += square_name(move.to_sq)
        if move.promotion is not None:
            san += "=" + _SAN_PIECE[move.promotion]

    position.make_move(move)
    try:
        gen_after = MoveGenerator(position)
        if gen_after.is_in_check(position.side_to_move):
            san += "+" if gen_after.generate_legal_moves() else "#"
    finally:
        position.unmake_move(move)
    return san


def _disambiguation(position: Position, move: Move, legal: Sequence[Move]) -> str:
    board = position.board
    piece = board[move.from_sq]
    rivals = [
        m.from_sq
        for m in legal
        if m.to_sq == move.to_sq and m.from_sq != move.from_sq and board[m.from_sq] == piece
    ]
    if not rivals:
        return ""
    if all(file_of(sq) != file_of(move.from_sq) for sq in rivals):
        return square_name(move.from_sq)[0]
    if all(rank_of(sq) != rank_of(move.from_sq) for sq in rivals):
        return square_name(move.from_sq)[1]
    return square_name(move.from_sq)


def parse_san(position: Position, san: str, legal: Sequence[Move] | None = None) -> Move:
    """Parse a SAN string into the matching legal :class:`Move`.

    Raises ``ValueError`` for malformed, illegal or ambiguous input.
    """
    if legal is None:
        legal = MoveGenerator(position).generate_legal_moves()
    clean = san.strip().rstrip("+#!?")

    castle = _CASTLES.get(clean)
    if castle is not None:
        for m in legal:
            if m.flag == castle:
                return m
        raise ValueError(f"Illegal move: {san}")

    promotion: PieceType | None = None
    if len(clean) > 2 and clean[-2] == "=":
        promotion = _SAN_PIECE_REV.get(clean[-1])
        if promotion is None or promotion == PieceType.KING:
            raise ValueError(f"Invalid promotion in {san!r}")
        clean = clean[:-2]

    if len(clean) < 2:
        raise ValueError(f"Invalid SAN: {san!r}")
    to_sq = parse_square(clean[-2:])
    clean = clean[:-2].removesuffix("x")

    piece_type = PieceType.PAWN
    if clean and clean[0] in _SAN_PIECE_REV:
        piece_type = _SAN_PIECE_REV[clean[0]]
        clean = clean[1:]

    from_file: int | None = None
    from_rank: int | None = None
    for ch in clean:
        if "a" <= ch <= "h":
            from_file = ord(ch) - ord("a")
        elif "1" <= ch <= "8":
            from_rank = int(ch) - 1
        else:
            raise ValueError(f"Invalid SAN: {san!r}")

    candidates: list[Move] = []
    for m in legal:
        p = position.board[m.from_sq]
        if p is None or p.piece_type != piece_type or m.to_sq != to_sq:
            continue
        if m.promotion != promotion:
            continue
        if from_file is not None and file_of(m.from_sq) != from_file:
            continue
        if from_rank is not None and rank_of(m.from_sq) != from_rank:
            continue
        candidates.append(m)

    if len(candidates) == 1:
        return candidates[0]
    if not candidates:
        raise ValueError(f"Illegal move: {san}")
    raise ValueError(f"Ambiguous move: {san} -> {', '.join(map(str, candidates))}")
