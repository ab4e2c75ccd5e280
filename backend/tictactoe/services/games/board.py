from typing import List, NamedTuple, Optional, Sequence, Tuple

BOARD_SIZE = 9
EMPTY = ''

# Rows, columns, diagonals. Order decides the winner reported when a board
# somehow completes more than one line.
WIN_LINES: Tuple[Tuple[int, int, int], ...] = (
    (0, 1, 2), (3, 4, 5), (6, 7, 8),
    (0, 3, 6), (1, 4, 7), (2, 5, 8),
    (0, 4, 8), (2, 4, 6),
)


class WinResult(NamedTuple):
    winner: str
    cells: List[int]


def empty_board() -> List[str]:
    return [EMPTY] * BOARD_SIZE


def _check_size(board: Sequence[str]) -> None:
    if len(board) != BOARD_SIZE:
        raise ValueError(f"board must have {BOARD_SIZE} cells, got {len(board)}")


def evaluate(board: Sequence[str]) -> Optional[WinResult]:
    """Return the first completed line on the board, or None."""
    _check_size(board)
    for a, b, c in WIN_LINES:
        if board[a] and board[a] == board[b] == board[c]:
            return WinResult(board[a], [a, b, c])
    return None


def is_full(board: Sequence[str]) -> bool:
    _check_size(board)
    return all(cell != EMPTY for cell in board)


def is_draw(board: Sequence[str]) -> bool:
    """A draw is a full board with no completed line."""
    return is_full(board) and evaluate(board) is None
