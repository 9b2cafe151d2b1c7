"""Position: board plus side to move, rights, en passant and clocks."""

from __future__ import annotations

from dataclasses import dataclass

from fishbowl.core.board import Board
from fishbowl.core.enums import CastlingRights, Color, MoveFlag, PieceType
from fishbowl.core.move import Move
from fishbowl.core.move_generator import MoveGenerator
from fishbowl.core.piece import Piece
from fishbowl.core.types import Square, file_of, make_square, rank_of
from fishbowl.core import zobrist

# Corner square -> right lost when anything moves from or onto it.
_ROOK_CORNERS: dict[Square, CastlingRights] = {
    make_square(0, 0): CastlingRights.WHITE_QUEENSIDE,
    make_square(7, 0): CastlingRights.WHITE_KINGSIDE,
    make_square(0, 7): CastlingRights.BLACK_QUEENSIDE,
    make_square(7, 7): CastlingRights.BLACK_KINGSIDE,
}


@dataclass(slots=True)
class _Undo:
    """Everything make_move destroys that unmake_move needs back."""

    castling: CastlingRights
    en_passant: Square | None
    halfmove_clock: int
    captured: Piece | None
    key: int


class Position:
    """Mutable chess position with make/unmake support.

    Positions that have been handed to a :class:`~fishbowl.game.state.GameState`
    are treated as frozen; search and legality checks work on copies.
    """

    __slots__ = (
        "board",
        "side_to_move",
        "castling",
        "en_passant",
        "halfmove_clock",
        "fullmove_number",
        "_key",
        "_undo",
    )

    def __init__(
        self,
        board: Board | None = None,
        side_to_move: Color = Color.WHITE,
        castling: CastlingRights = CastlingRights.ALL,
        en_passant: Square | None = None,
        halfmove_clock: int = 0,
        fullmove_number: int = 1,
    ) -> None:
        self.board = board if board is not None else Board.initial()
        self.side_to_move = side_to_move
        self.castling = castling
        self.en_passant = en_passant
        self.halfmove_clock = halfmove_clock
        self.fullmove_number = fullmove_number
        self._undo: list[_Undo] = []
        self._key = self._compute_key()

    # -- Make / unmake ------------------------------------------------------

    def make_move(self, move: Move) -> None:
        """Apply *move* without legality checks, remembering how to undo it."""
        board = self.board
        piece = board[move.from_sq]
        if piece is None:
            raise ValueError(f"No piece on {move.from_sq}")

        capture_sq = move.to_sq
        if move.flag == MoveFlag.EN_PASSANT:
            capture_sq = make_square(file_of(move.to_sq), rank_of(move.from_sq))
        captured = board[capture_sq]

        self._undo.append(
            _Undo(self.castling, self.en_passant, self.halfmove_clock, captured, self._key)
        )

        key = self._key
        key ^= zobrist.piece_key(piece, move.from_sq)
        board[move.from_sq] = None
        if captured is not None:
            key ^= zobrist.piece_key(captured, capture_sq)
            board[capture_sq] = None

        placed = piece
        if move.flag == MoveFlag.PROMOTION and move.promotion is not None:
            placed = Piece(piece.color, move.promotion)
        board[move.to_sq] = placed
        key ^= zobrist.piece_key(placed, move.to_sq)

        if move.is_castle:
            rook_from, rook_to = _castle_rook_squares(move)
            rook = board[rook_from]
            assert rook is not None
            board[rook_from] = None
            board[rook_to] = rook
            key ^= zobrist.piece_key(rook, rook_from) ^ zobrist.piece_key(rook, rook_to)

        if self.en_passant is not None:
            key ^= zobrist.en_passant_key(self.en_passant)
        self.en_passant = None
        if move.flag == MoveFlag.DOUBLE_PAWN:
            target = (move.from_sq + move.to_sq) // 2
            if self.can_capture_en_passant(move.to_sq, piece.color.opposite):
                self.en_passant = target
                key ^= zobrist.en_passant_key(target)

        castling = self.castling
        if piece.piece_type == PieceType.KING:
            castling &= ~CastlingRights.for_color(piece.color)
        castling &= ~_ROOK_CORNERS.get(move.from_sq, CastlingRights.NONE)
        castling &= ~_ROOK_CORNERS.get(move.to_sq, CastlingRights.NONE)
        if castling != self.castling:
            key ^= zobrist.castling_key(self.castling) ^ zobrist.castling_key(castling)
            self.castling = castling

        if piece.piece_type == PieceType.PAWN or captured is not None:
            self.halfmove_clock = 0
        else:
            self.halfmove_clock += 1
        if self.side_to_move == Color.BLACK:
            self.fullmove_number += 1

        self.side_to_move = self.side_to_move.opposite
        self._key = key ^ zobrist.side_to_move_key()

    def unmake_move(self, move: Move) -> None:
        """Undo the most recent :meth:`make_move` (which must be *move*)."""
        undo = self._undo.pop()
        board = self.board

        self.side_to_move = self.side_to_move.opposite
        if self.side_to_move == Color.BLACK:
            self.fullmove_number -= 1

        piece = board[move.to_sq]
        assert piece is not None
        if move.flag == MoveFlag.PROMOTION:
            piece = Piece(piece.color, PieceType.PAWN)
        board[move.from_sq] = piece

        if move.flag == MoveFlag.EN_PASSANT:
            board[move.to_sq] = None
            board[make_square(file_of(move.to_sq), rank_of(move.from_sq))] = undo.captured
        else:
            board[move.to_sq] = undo.captured

        if move.is_castle:
            rook_from, rook_to = _castle_rook_squares(move)
            board[rook_from] = board[rook_to]
            board[rook_to] = None

        self.castling = undo.castling
        self.en_passant = undo.en_passant
        self.halfmove_clock = undo.halfmove_clock
        self._key = undo.key

    # -- Queries ------------------------------------------------------------

    @property
    def zobrist_hash(self) -> int:
        """Key over board, side to move, castling rights and en passant file."""
        return self._key

    def copy(self) -> Position:
        """Independent copy without undo history."""
        clone = Position(
            board=self.board.copy(),
            side_to_move=self.side_to_move,
            castling=self.castling,
            en_passant=self.en_passant,
            halfmove_clock=self.halfmove_clock,
            fullmove_number=self.fullmove_number,
        )
        return clone

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Position):
            return NotImplemented
        return (
            self.board == other.board
            and self.side_to_move == other.side_to_move
            and self.castling == other.castling
            and self.en_passant == other.en_passant
            and self.halfmove_clock == other.halfmove_clock
            and self.fullmove_number == other.fullmove_number
        )

    def __repr__(self) -> str:
        return f"Position(side_to_move={self.side_to_move}, castling={self.castling!r})\n{self.board!r}"

    def can_capture_en_passant(self, pawn_sq: Square, capturer: Color) -> bool:
        """Whether a *capturer* pawn can legally take the pawn that just double-stepped.

        A capture that would expose the capturer's own king does not count.
        """
        board = self.board
        capturing_pawn = Piece(capturer, PieceType.PAWN)
        target = pawn_sq + capturer.forward
        file_idx = file_of(pawn_sq)
        for from_sq in (pawn_sq - 1 if file_idx > 0 else None, pawn_sq + 1 if file_idx < 7 else None):
            if from_sq is None or board[from_sq] != capturing_pawn:
                continue
            if not board.has_piece(capturer, PieceType.KING):
                return True
            captured = board[pawn_sq]
            board[from_sq] = None
            board[pawn_sq] = None
            board[target] = capturing_pawn
            exposed = MoveGenerator(self).is_in_check(capturer)
            board[target] = None
            board[pawn_sq] = captured
            board[from_sq] = capturing_pawn
            if not exposed:
                return True
        return False

    # -- Internal -----------------------------------------------------------

    def _compute_key(self) -> int:
        key = zobrist.castling_key(self.castling)
        if self.side_to_move == Color.BLACK:
            key ^= zobrist.side_to_move_key()
        if self.en_passant is not None:
            key ^= zobrist.en_passant_key(self.en_passant)
        for sq in range(64):
            piece = self.board[sq]
            if piece is not None:
                key ^= zobrist.piece_key(piece, sq)
        return key


def _castle_rook_squares(move: Move) -> tuple[Square, Square]:
    rank = rank_of(move.from_sq)
    if move.flag == MoveFlag.CASTLE_KINGSIDE:
        return make_square(7, rank), make_square(5, rank)
    return make_square(0, rank), make_square(3, rank)
