"""FEN parsing and serialization."""

from __future__ import annotations

from fishbowl.core.board import Board
from fishbowl.core.enums import CastlingRights, Color
from fishbowl.core.piece import Piece
from fishbowl.core.position import Position
from fishbowl.core.types import make_square, parse_square, rank_of, square_name

STARTING_FEN = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"

_CASTLING_LETTERS: tuple[tuple[str, CastlingRights], ...] = (
    ("K", CastlingRights.WHITE_KINGSIDE),
    ("Q", CastlingRights.WHITE_QUEENSIDE),
    ("k", CastlingRights.BLACK_KINGSIDE),
    ("q", CastlingRights.BLACK_QUEENSIDE),
)


def position_from_fen(fen: str) -> Position:
    """Parse a FEN string into a :class:`Position`.

    The en-passant field (default ``-``) and the clock fields are optional.
    An en-passant square is kept only when a pawn of the side to move could
    legally capture onto it, matching what :meth:`Position.make_move` records.
    """
    parts = fen.split()
    if not 3 <= len(parts) <= 6:
        raise ValueError(f"Invalid FEN (need 3-6 fields): {fen!r}")

    board = _parse_placement(parts[0], fen)

    side = Color.from_fen_letter(parts[1])

    castling = _parse_castling(parts[2])
    halfmove = _parse_counter(parts, 4, default=0, minimum=0)
    fullmove = _parse_counter(parts, 5, default=1, minimum=1)

    position = Position(board, side, castling, None, halfmove, fullmove)
    ep_field = parts[3] if len(parts) > 3 else "-"
    if ep_field != "-":
        ep = parse_square(ep_field)
        if rank_of(ep) != (5 if side == Color.WHITE else 2):
            raise ValueError(f"Invalid FEN en-passant square for side-to-move: {ep_field!r}")
        pawn_sq = ep - side.forward
        if position.can_capture_en_passant(pawn_sq, side):
            position = Position(board, side, castling, ep, halfmove, fullmove)
    return position


def position_to_fen(pos: Position) -> str:
    """Serialise a :class:`Position` to FEN."""
    rows: list[str] = []
    for rank in range(7, -1, -1):
        row = ""
        empty = 0
        for file in range(8):
            piece = pos.board[make_square(file, rank)]
            if piece is None:
                empty += 1
                continue
            if empty:
                row += str(empty)
                empty = 0
            row += str(piece)
        rows.append(row + (str(empty) if empty else ""))

    side = pos.side_to_move.fen_letter
    castling = "".join(letter for letter, right in _CASTLING_LETTERS if pos.castling & right)
    ep = square_name(pos.en_passant) if pos.en_passant is not None else "-"
    return (
        f"{'/'.join(rows)} {side} {castling or '-'} {ep} "
        f"{pos.halfmove_clock} {pos.fullmove_number}"
    )


def _parse_placement(placement: str, fen: str) -> Board:
    ranks = placement.split("/")
    if len(ranks) != 8:
        raise ValueError(f"Invalid FEN board (must contain 8 ranks): {fen!r}")
    board = Board()
    for rank_idx, rank_text in enumerate(ranks):
        rank = 7 - rank_idx
        file = 0
        for ch in rank_text:
            if ch.isdigit():
                if not 1 <= int(ch) <= 8:
                    raise ValueError(f"Invalid FEN digit {ch!r}: {fen!r}")
                file += int(ch)
            else:
                if file >= 8:
                    raise ValueError(f"Invalid FEN rank width: {fen!r}")
                board[make_square(file, rank)] = Piece.from_char(ch)
                file += 1
        if file != 8:
            raise ValueError(f"Invalid FEN rank width: {fen!r}")
    return board


def _parse_castling(text: str) -> CastlingRights:
    if text == "-":
        return CastlingRights.NONE
    letters = dict(_CASTLING_LETTERS)
    castling = CastlingRights.NONE
    for ch in text:
        right = letters.get(ch)
        if right is None or castling & right:
            raise ValueError(f"Invalid FEN castling field: {text!r}")
        castling |= right
    return castling


def _parse_counter(parts: list[str], index: int, *, default: int, minimum: int) -> int:
    if len(parts) <= index:
        return default
    try:
        value = int(parts[index])
    except ValueError:
        raise ValueError(f"Invalid FEN counter: {parts[index]!r}") from None
    if value < minimum:
        raise ValueError(f"Invalid FEN counter: {parts[index]!r}")
    return value

