import numpy as np
import pytest

@pytest.fixture
def rng():
    return np.random.default_rng(0)

@pytest.fixture(params=[np.int64, np.float64])
def dtype(request):
    return request.param
