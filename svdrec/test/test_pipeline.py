import pytest
import torch

from svdrec.dataset import SAMPLE_COLS, SAMPLE_DATA, SAMPLE_ROWS
from svdrec.errors import FactorizationFailure, IndexOutOfRange, InvalidDimension
from svdrec.factorize import LinalgBackend
from svdrec.pipeline import approximate, recommend_for_user


@pytest.mark.parametrize(
    "user_index, expected",
    [
        (0, [2]),
        (1, [1, 2]),
        (2, [2]),
        (3, [1, 2]),
        (4, [0]),
    ],
)
def test_sample_scenario(user_index, expected):
    assert recommend_for_user(SAMPLE_DATA, SAMPLE_ROWS, SAMPLE_COLS, user_index) == expected


def test_nested_input_matches_flat_input():
    nested = [SAMPLE_DATA[r * SAMPLE_COLS:(r + 1) * SAMPLE_COLS] for r in range(SAMPLE_ROWS)]
    for user in range(SAMPLE_ROWS):
        assert recommend_for_user(nested, SAMPLE_ROWS, SAMPLE_COLS, user) == \
            recommend_for_user(SAMPLE_DATA, SAMPLE_ROWS, SAMPLE_COLS, user)


def test_idempotent():
    first = recommend_for_user(SAMPLE_DATA, SAMPLE_ROWS, SAMPLE_COLS, 3)
    second = recommend_for_user(SAMPLE_DATA, SAMPLE_ROWS, SAMPLE_COLS, 3)
    assert first == second


def test_returned_items_are_zero_in_original_and_sorted():
    gen = torch.Generator().manual_seed(7)
    R = torch.randint(0, 6, (8, 6), generator=gen).to(torch.float64)
    R_hat = approximate(R)
    for user in range(8):
        items = recommend_for_user(R, 8, 6, user, tol=0.0)
        assert all(R[user, j] == 0 for j in items)
        assert sorted(items) == [j for j in range(6) if R[user, j] == 0]
        keys = [(-R_hat[user, j].item(), j) for j in items]
        assert keys == sorted(keys)


def test_user_with_no_zeros_gets_empty_list():
    assert recommend_for_user([1, 2, 3, 0], 2, 2, 0) == []


def test_caller_data_not_mutated():
    data = list(SAMPLE_DATA)
    recommend_for_user(data, SAMPLE_ROWS, SAMPLE_COLS, 1)
    assert data == SAMPLE_DATA


@pytest.mark.parametrize("user_index", [-1, SAMPLE_ROWS, 99])
def test_user_index_out_of_range(user_index):
    with pytest.raises(IndexOutOfRange):
        recommend_for_user(SAMPLE_DATA, SAMPLE_ROWS, SAMPLE_COLS, user_index)


def test_wrong_length():
    with pytest.raises(InvalidDimension):
        recommend_for_user(SAMPLE_DATA[:-1], SAMPLE_ROWS, SAMPLE_COLS, 0)


def test_non_finite_data():
    data = list(SAMPLE_DATA)
    data[5] = float("nan")
    with pytest.raises(FactorizationFailure):
        recommend_for_user(data, SAMPLE_ROWS, SAMPLE_COLS, 0)


SAMPLE_EXPECTED = {0: [2], 1: [1, 2], 2: [2], 3: [1, 2], 4: [0]}


@pytest.mark.parametrize("dtype", [torch.float32, torch.float64])
@pytest.mark.parametrize("scale", [1e-3, 1.0, 1e6, 1e9, 1e12])
def test_sample_ranking_independent_of_precision_and_scale(dtype, scale):
    data = [v * scale for v in SAMPLE_DATA]
    backend = LinalgBackend(dtype=dtype)
    got = {u: recommend_for_user(data, SAMPLE_ROWS, SAMPLE_COLS, u, backend=backend) for u in range(SAMPLE_ROWS)}
    assert got == SAMPLE_EXPECTED


def test_approximate_round_trip():
    R = torch.tensor(SAMPLE_DATA, dtype=torch.float64).reshape(SAMPLE_ROWS, SAMPLE_COLS)
    assert (approximate(R) - R).abs().max().item() < 1e-6
