"""Zobrist keys used for repetition detection."""

from __future__ import annotations

from typing import Final

from fishbowl.core.enums import CastlingRights
from fishbowl.core.piece import Piece
from fishbowl.core.types import Square

_SEED: Final = 0x6A09E667F3BCC908
_MASK_64: Final = 0xFFFFFFFFFFFFFFFF


def _splitmix64(state: int) -> int:
    z = (state + 0x9E3779B97F4A7C15) & _MASK_64
    z = ((z ^ (z >> 30)) * 0xBF58476D1CE4E5B9) & _MASK_64
    z = ((z ^ (z >> 27)) * 0x94D049BB133111EB) & _MASK_64
    return z ^ (z >> 31)


def _keys(offset: int, count: int) -> tuple[int, ...]:
    return tuple(_splitmix64(_SEED + offset + idx) for idx in range(count))


# Layout: 12 piece kinds x 64 squares, side to move, 16 castling masks, 8 ep files.
_PIECE_KEYS: Final = _keys(0, 12 * 64)
_SIDE_KEY: Final = _keys(12 * 64, 1)[0]
_CASTLING_KEYS: Final = _keys(12 * 64 + 1, 16)
_EP_FILE_KEYS: Final = _keys(12 * 64 + 17, 8)


def piece_key(piece: Piece, sq: Square) -> int:
    kind = int(piece.color) * 6 + int(piece.piece_type) - 1
    return _PIECE_KEYS[kind * 64 + sq]


def side_to_move_key() -> int:
    return _SIDE_KEY


def castling_key(castling: CastlingRights) -> int:
    return _CASTLING_KEYS[int(castling) & 0xF]


def en_passant_key(ep_square: Square) -> int:
    """Only the file matters; the rank follows from the side to move."""
    return _EP_FILE_KEYS[ep_square & 7]
