import pytest
import torch

from svdrec.dataset import SAMPLE_COLS, SAMPLE_DATA, SAMPLE_ROWS


@pytest.fixture
def sample_matrix() -> torch.Tensor:
    return torch.tensor(SAMPLE_DATA, dtype=torch.float64).reshape(SAMPLE_ROWS, SAMPLE_COLS)
