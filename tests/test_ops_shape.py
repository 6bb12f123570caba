import numpy as np
import pytest

from tensoralg.errors import RankError, ShapeMismatch
from tensoralg.ops import transpose_2d
from tensoralg.tensor import Tensor
from tests.utils import make_tensor, make_torch, random_array, tdata, assert_close


def test_reshape_preserves_flat_order(rng, dtype):
    x_np = random_array(rng, (2, 3, 4, 5), dtype)
    x = make_tensor(x_np, dtype)

    flat = x.tolist()
    out = x.reshape(2, 3, 20, 1)

    assert out is x
    assert x.shape == (2, 3, 20, 1)
    assert x.tolist() == flat
    assert_close(tdata(x), x_np.reshape(2, 3, 20, 1))


def test_reshape_accepts_sequence():
    t = Tensor[int, 3](2, 2, 2)
    t.reshape([2, 4, 1])
    assert t.shape == (2, 4, 1)
    t.reshape((8, 1, 1))
    assert t.shape == (8, 1, 1)


def test_reshape_moves_element_to_new_coordinates():
    t = Tensor[int, 2](2, 3)
    t.fill(7)
    t[1, 2] = 42
    t.reshape(3, 2)
    assert t[2, 1] == 42
    assert t[0, 0] == 7


@pytest.mark.parametrize("new_shape", [(3, 3), (6,), (2, 3, 1), (6, 0), (-2, -3)])
def test_reshape_mismatch_leaves_tensor_unchanged(new_shape):
    t = Tensor[int, 2].from_values(range(6), (2, 3))
    with pytest.raises(ShapeMismatch):
        t.reshape(*new_shape)
    assert t.shape == (2, 3)
    assert t.tolist() == list(range(6))


def test_transpose_2d_matches_torch(rng, dtype):
    for shape in [(4, 7), (2, 3, 4), (2, 3, 4, 5)]:
        x_np = random_array(rng, shape, dtype)
        x = make_tensor(x_np, dtype)

        yt = make_torch(x_np).transpose(-1, -2)
        y = transpose_2d(x)

        assert type(y) is type(x)
        assert_close(tdata(y), yt.numpy())


def test_transpose_2d_example():
    m = Tensor[int, 2](2, 3)
    m[1, 0] = 99
    mt = m.transpose_2d()
    assert mt.shape == (3, 2)
    assert mt[0, 1] == 99


def test_transpose_2d_is_a_copy():
    m = Tensor[int, 2].from_values(range(6), (2, 3))
    mt = transpose_2d(m)
    mt[0, 0] = 100
    assert m[0, 0] == 0


def test_transpose_2d_involution(rng, dtype):
    x = make_tensor(random_array(rng, (5, 3), dtype), dtype)
    assert transpose_2d(transpose_2d(x)) == x


def test_transpose_2d_requires_rank_two():
    with pytest.raises(RankError):
        transpose_2d(Tensor[int, 1](4))
