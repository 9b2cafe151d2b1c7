"""Legal move generation and attack detection."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fishbowl.core.enums import CastlingRights, Color, MoveFlag, PieceType
from fishbowl.core.move import Move
from fishbowl.core.piece import Piece
from fishbowl.core.types import Square, file_of, make_square, rank_of

if TYPE_CHECKING:
    from fishbowl.core.position import Position

Offsets = tuple[tuple[int, int], ...]

KNIGHT_OFFSETS: Offsets = ((1, 2), (2, 1), (2, -1), (1, -2), (-1, -2), (-2, -1), (-2, 1), (-1, 2))
KING_OFFSETS: Offsets = ((1, 0), (1, 1), (0, 1), (-1, 1), (-1, 0), (-1, -1), (0, -1), (1, -1))
BISHOP_DIRS: Offsets = ((1, 1), (-1, 1), (-1, -1), (1, -1))
ROOK_DIRS: Offsets = ((1, 0), (0, 1), (-1, 0), (0, -1))

PROMOTION_TYPES: tuple[PieceType, ...] = (
    PieceType.QUEEN,
    PieceType.ROOK,
    PieceType.BISHOP,
    PieceType.KNIGHT,
)


# -- Precomputed tables ----------------------------------------------------


def _step(sq: Square, df: int, dr: int) -> Square | None:
    f, r = file_of(sq) + df, rank_of(sq) + dr
    if 0 <= f < 8 and 0 <= r < 8:
        return make_square(f, r)
    return None


def _leaper_table(offsets: Offsets) -> tuple[tuple[Square, ...], ...]:
    table = []
    for sq in range(64):
        targets = (_step(sq, df, dr) for df, dr in offsets)
        table.append(tuple(t for t in targets if t is not None))
    return tuple(table)


def _ray_table(directions: Offsets) -> tuple[tuple[tuple[Square, ...], ...], ...]:
    table = []
    for sq in range(64):
        rays = []
        for df, dr in directions:
            ray: list[Square] = []
            nxt = _step(sq, df, dr)
            while nxt is not None:
                ray.append(nxt)
                nxt = _step(nxt, df, dr)
            rays.append(tuple(ray))
        table.append(tuple(rays))
    return tuple(table)


def _mask(squares: tuple[Square, ...]) -> int:
    bits = 0
    for sq in squares:
        bits |= 1 << sq
    return bits


_KNIGHT_TARGETS = _leaper_table(KNIGHT_OFFSETS)
_KING_TARGETS = _leaper_table(KING_OFFSETS)
_KNIGHT_MASKS = tuple(_mask(t) for t in _KNIGHT_TARGETS)
_KING_MASKS = tuple(_mask(t) for t in _KING_TARGETS)
_BISHOP_RAYS = _ray_table(BISHOP_DIRS)
_ROOK_RAYS = _ray_table(ROOK_DIRS)
_QUEEN_RAYS = tuple(b + r for b, r in zip(_BISHOP_RAYS, _ROOK_RAYS))

# [attacker color][sq] -> squares from which a pawn of that color attacks sq.
_PAWN_ATTACKERS: dict[Color, tuple[int, ...]] = {
    Color.WHITE: tuple(_mask(t) for t in _leaper_table(((-1, -1), (1, -1)))),
    Color.BLACK: tuple(_mask(t) for t in _leaper_table(((-1, 1), (1, 1)))),
}

_PAWN_START_RANK: dict[Color, int] = {Color.WHITE: 1, Color.BLACK: 6}
_PAWN_LAST_RANK: dict[Color, int] = {Color.WHITE: 7, Color.BLACK: 0}
_PAWN_CAPTURE_OFFSETS: dict[Color, Offsets] = {
    Color.WHITE: ((-1, 1), (1, 1)),
    Color.BLACK: ((-1, -1), (1, -1)),
}

# color -> (right, squares that must be empty, squares the king passes through)
_CASTLING_PATHS: dict[Color, tuple[tuple[CastlingRights, MoveFlag, tuple[int, ...], tuple[int, ...]], ...]] = {
    color: (
        (
            CastlingRights.WHITE_KINGSIDE if color == Color.WHITE else CastlingRights.BLACK_KINGSIDE,
            MoveFlag.CASTLE_KINGSIDE,
            (5, 6),
            (5, 6),
        ),
        (
            CastlingRights.WHITE_QUEENSIDE if color == Color.WHITE else CastlingRights.BLACK_QUEENSIDE,
            MoveFlag.CASTLE_QUEENSIDE,
            (1, 2, 3),
            (3, 2),
        ),
    )
    for color in Color
}


class MoveGenerator:
    """Generates moves for the side to move in a :class:`Position`.

    Legality is established by playing each pseudo-legal move and checking
    whether the mover's king is attacked afterwards; the position is
    restored before every method returns.
    """

    __slots__ = ("_pos", "_board")

    def __init__(self, position: Position) -> None:
        self._pos = position
        self._board = position.board

    # -- Public API ---------------------------------------------------------

    def generate_legal_moves(self) -> list[Move]:
        """All strictly legal moves, in a stable order."""
        pos = self._pos
        mover = pos.side_to_move
        legal: list[Move] = []
        for move in self.generate_pseudo_legal_moves():
            pos.make_move(move)
            if not self.is_in_check(mover):
                legal.append(move)
            pos.unmake_move(move)
        return legal

    def generate_pseudo_legal_moves(self) -> list[Move]:
        """Moves that obey piece movement but may leave the own king in check."""
        color = self._pos.side_to_move
        board = self._board
        moves: list[Move] = []

        for sq in board.pieces(color, PieceType.PAWN):
            self._gen_pawn(sq, color, moves)
        for sq in board.pieces(color, PieceType.KNIGHT):
            self._gen_leaper(sq, color, _KNIGHT_TARGETS[sq], moves)
        for sq in board.pieces(color, PieceType.BISHOP):
            self._gen_slider(sq, color, _BISHOP_RAYS[sq], moves)
        for sq in board.pieces(color, PieceType.ROOK):
            self._gen_slider(sq, color, _ROOK_RAYS[sq], moves)
        for sq in board.pieces(color, PieceType.QUEEN):
            self._gen_slider(sq, color, _QUEEN_RAYS[sq], moves)
        for sq in board.pieces(color, PieceType.KING):
            self._gen_leaper(sq, color, _KING_TARGETS[sq], moves)
            self._gen_castling(sq, color, moves)
        return moves

    # -- Attack detection ---------------------------------------------------

    def is_in_check(self, color: Color) -> bool:
        """Is *color*'s king attacked?"""
        return self.is_square_attacked(self._board.king_square(color), color.opposite)

    def is_square_attacked(self, sq: Square, by_color: Color) -> bool:
        board = self._board
        if board.pieces_bitboard(by_color, PieceType.PAWN) & _PAWN_ATTACKERS[by_color][sq]:
            return True
        if board.pieces_bitboard(by_color, PieceType.KNIGHT) & _KNIGHT_MASKS[sq]:
            return True
        if board.pieces_bitboard(by_color, PieceType.KING) & _KING_MASKS[sq]:
            return True
        queens = board.pieces_bitboard(by_color, PieceType.QUEEN)
        diagonal = board.pieces_bitboard(by_color, PieceType.BISHOP) | queens
        if diagonal and self._ray_hits(_BISHOP_RAYS[sq], diagonal):
            return True
        straight = board.pieces_bitboard(by_color, PieceType.ROOK) | queens
        return bool(straight) and self._ray_hits(_ROOK_RAYS[sq], straight)

    def _ray_hits(self, rays: tuple[tuple[Square, ...], ...], attackers: int) -> bool:
        """Whether the first piece met along any ray is one of *attackers*."""
        board = self._board
        for ray in rays:
            for to_sq in ray:
                if board[to_sq] is None:
                    continue
                if attackers & (1 << to_sq):
                    return True
                break
        return False

    # -- Piece generators ---------------------------------------------------

    def _gen_pawn(self, sq: Square, color: Color, moves: list[Move]) -> None:
        board = self._board
        promotes = rank_of(sq) + (1 if color == Color.WHITE else -1) == _PAWN_LAST_RANK[color]

        one_step = sq + color.forward
        if board.is_empty(one_step):
            self._add_pawn_move(sq, one_step, promotes, moves)
            two_step = one_step + color.forward
            if rank_of(sq) == _PAWN_START_RANK[color] and board.is_empty(two_step):
                moves.append(Move(sq, two_step, MoveFlag.DOUBLE_PAWN))

        for df, dr in _PAWN_CAPTURE_OFFSETS[color]:
            target_sq = _step(sq, df, dr)
            if target_sq is None:
                continue
            target = board[target_sq]
            if target is not None:
                if target.color != color:
                    self._add_pawn_move(sq, target_sq, promotes, moves)
            elif target_sq == self._pos.en_passant:
                moves.append(Move(sq, target_sq, MoveFlag.EN_PASSANT))

    @staticmethod
    def _add_pawn_move(
        from_sq: Square, to_sq: Square, promotes: bool, moves: list[Move]
    ) -> None:
        if promotes:
            moves.extend(Move(from_sq, to_sq, MoveFlag.PROMOTION, pt) for pt in PROMOTION_TYPES)
        else:
            moves.append(Move(from_sq, to_sq))

    def _gen_leaper(
        self, sq: Square, color: Color, targets: tuple[Square, ...], moves: list[Move]
    ) -> None:
        board = self._board
        for to_sq in targets:
            target = board[to_sq]
            if target is None or target.color != color:
                moves.append(Move(sq, to_sq))

    def _gen_slider(
        self,
        sq: Square,
        color: Color,
        rays: tuple[tuple[Square, ...], ...],
        moves: list[Move],
    ) -> None:
        board = self._board
        for ray in rays:
            for to_sq in ray:
                target = board[to_sq]
                if target is None:
                    moves.append(Move(sq, to_sq))
                    continue
                if target.color != color:
                    moves.append(Move(sq, to_sq))
                break

    def _gen_castling(self, king_sq: Square, color: Color, moves: list[Move]) -> None:
        home = 0 if color == Color.WHITE else 56
        if king_sq != home + 4 or self.is_in_check(color):
            return
        board = self._board
        opponent = color.opposite
        rook = Piece(color, PieceType.ROOK)
        for right, flag, empty_files, king_path in _CASTLING_PATHS[color]:
            if not self._pos.castling & right:
                continue
            rook_file = 7 if flag == MoveFlag.CASTLE_KINGSIDE else 0
            if board[home + rook_file] != rook:
                continue
            if not all(board.is_empty(home + f) for f in empty_files):
                continue
            if any(self.is_square_attacked(home + f, opponent) for f in king_path):
                continue
            moves.append(Move(king_sq, home + king_path[-1], flag))
