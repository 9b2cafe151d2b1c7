"""Board - piece placement on 64 squares."""

from __future__ import annotations

from collections.abc import Iterator

from fishbowl.core.enums import Color, PieceType
from fishbowl.core.piece import Piece
from fishbowl.core.types import Square, make_square

_BACK_RANK: tuple[PieceType, ...] = (
    PieceType.ROOK,
    PieceType.KNIGHT,
    PieceType.BISHOP,
    PieceType.QUEEN,
    PieceType.KING,
    PieceType.BISHOP,
    PieceType.KNIGHT,
    PieceType.ROOK,
)


def _iter_bits(bitboard: int) -> Iterator[Square]:
    while bitboard:
        lsb = bitboard & -bitboard
        yield lsb.bit_length() - 1
        bitboard ^= lsb


class Board:
    """Mutable mailbox board that also keeps per-piece bitboards in sync."""

    __slots__ = ("_squares", "_bitboards", "_kings")

    def __init__(self) -> None:
        self._squares: list[Piece | None] = [None] * 64
        # (color, piece_type) -> bitboard of occupied squares.
        self._bitboards: dict[tuple[Color, PieceType], int] = {
            (color, pt): 0 for color in Color for pt in PieceType
        }
        self._kings: dict[Color, Square | None] = {Color.WHITE: None, Color.BLACK: None}

    # -- Element access -----------------------------------------------------

    def __getitem__(self, sq: Square) -> Piece | None:
        return self._squares[sq]

    def __setitem__(self, sq: Square, piece: Piece | None) -> None:
        old = self._squares[sq]
        if old == piece:
            return
        mask = 1 << sq
        if old is not None:
            self._bitboards[(old.color, old.piece_type)] &= ~mask
            if old.piece_type == PieceType.KING and self._kings[old.color] == sq:
                self._kings[old.color] = None
        self._squares[sq] = piece
        if piece is not None:
            self._bitboards[(piece.color, piece.piece_type)] |= mask
            if piece.piece_type == PieceType.KING:
                self._kings[piece.color] = sq

    def is_empty(self, sq: Square) -> bool:
        return self._squares[sq] is None

    # -- Queries ------------------------------------------------------------

    def pieces_bitboard(self, color: Color, piece_type: PieceType) -> int:
        return self._bitboards[(color, piece_type)]

    def pieces(self, color: Color, piece_type: PieceType) -> list[Square]:
        """Squares holding *color*'s pieces of *piece_type*, ascending."""
        return list(_iter_bits(self._bitboards[(color, piece_type)]))

    def has_piece(self, color: Color, piece_type: PieceType) -> bool:
        return bool(self._bitboards[(color, piece_type)])

    def occupancy(self, color: Color) -> int:
        bits = 0
        for pt in PieceType:
            bits |= self._bitboards[(color, pt)]
        return bits

    def count(self, color: Color, piece_type: PieceType) -> int:
        return self._bitboards[(color, piece_type)].bit_count()

    def king_square(self, color: Color) -> Square:
        sq = self._kings[color]
        if sq is None:
            raise ValueError(f"No {color} king on board")
        return sq

    def kings_present(self) -> bool:
        """Exactly one king per side."""
        return all(self.count(color, PieceType.KING) == 1 for color in Color)

    # -- Copying ------------------------------------------------------------

    def copy(self) -> Board:
        clone = Board()
        clone._squares = self._squares.copy()
        clone._bitboards = self._bitboards.copy()
        clone._kings = self._kings.copy()
        return clone

    @classmethod
    def initial(cls) -> Board:
        """Standard starting placement."""
        board = cls()
        for file, pt in enumerate(_BACK_RANK):
            board[make_square(file, 0)] = Piece(Color.WHITE, pt)
            board[make_square(file, 1)] = Piece(Color.WHITE, PieceType.PAWN)
            board[make_square(file, 6)] = Piece(Color.BLACK, PieceType.PAWN)
            board[make_square(file, 7)] = Piece(Color.BLACK, pt)
        return board

    # -- Dunder helpers -----------------------------------------------------

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Board):
            return NotImplemented
        return self._squares == other._squares

    def __repr__(self) -> str:
        rows: list[str] = []
        for rank in range(7, -1, -1):
            cells = (str(self[make_square(f, rank)] or ".") for f in range(8))
            rows.append(f"{rank + 1} {' '.join(cells)}")
        rows.append("  a b c d e f g h")
        return "\n".join(rows)
