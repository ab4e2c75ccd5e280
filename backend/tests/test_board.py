import itertools

import pytest

from tictactoe.services.games.board import WIN_LINES, empty_board, evaluate, is_draw, is_full


def test_empty_board_has_no_result():
    board = empty_board()
    assert len(board) == 9
    assert evaluate(board) is None
    assert not is_draw(board)


@pytest.mark.parametrize('line', WIN_LINES)
@pytest.mark.parametrize('symbol', ['X', 'O'])
def test_every_line_wins(line, symbol):
    board = empty_board()
    for idx in line:
        board[idx] = symbol
    result = evaluate(board)
    assert result.winner == symbol
    assert result.cells == list(line)


def test_column_win_example():
    board = ['X', 'O', 'X', 'X', 'O', '', '', '', '']
    assert evaluate(board) is None
    board[6] = 'X'
    result = evaluate(board)
    assert result.winner == 'X'
    assert result.cells == [0, 3, 6]


def test_full_board_without_line_is_draw():
    board = ['X', 'O', 'X', 'X', 'O', 'O', 'O', 'X', 'O']
    assert evaluate(board) is None
    assert is_full(board)
    assert is_draw(board)


def test_full_board_with_line_is_not_draw():
    board = ['X', 'X', 'X', 'O', 'O', 'X', 'X', 'O', 'O']
    assert is_full(board)
    assert evaluate(board).winner == 'X'
    assert not is_draw(board)


def test_mixed_line_does_not_win():
    board = ['X', 'O', 'X', '', '', '', '', '', '']
    assert evaluate(board) is None


def test_first_line_in_order_is_reported():
    # Row 0 and column 0 both complete; rows are checked first
    board = ['X', 'X', 'X', 'X', 'O', 'O', 'X', 'O', 'O']
    assert evaluate(board).cells == [0, 1, 2]


def test_single_move_wins_iff_it_completes_a_line():
    # Place two symbols on every pair of cells of a line, then fill the third
    for line in WIN_LINES:
        for missing in line:
            board = empty_board()
            for idx in line:
                if idx != missing:
                    board[idx] = 'O'
            assert evaluate(board) is None
            board[missing] = 'O'
            assert evaluate(board).winner == 'O'


def test_no_two_cell_pattern_wins():
    for a, b in itertools.combinations(range(9), 2):
        board = empty_board()
        board[a] = board[b] = 'X'
        assert evaluate(board) is None


def test_wrong_size_board_rejected():
    with pytest.raises(ValueError):
        evaluate(['X'] * 8)
    with pytest.raises(ValueError):
        is_full([''] * 10)
