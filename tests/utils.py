import numpy as np
import torch

from tensoralg.tensor import Tensor

ATOL = 1e-9
RTOL = 1e-7

def tdata(t: Tensor):
    return t.numpy()

def random_array(rng, shape, dtype=np.float64):
    if np.dtype(dtype).kind in "iu":
        return rng.integers(-9, 10, size=shape).astype(dtype)
    return rng.normal(size=shape).astype(dtype)

def make_tensor(x_np: np.ndarray, dtype=np.float64) -> Tensor:
    x_np = np.asarray(x_np)
    return Tensor[dtype, x_np.ndim].from_numpy(x_np)

def make_torch(x_np: np.ndarray) -> torch.Tensor:
    return torch.from_numpy(np.ascontiguousarray(x_np))

def assert_close(a, b, atol=ATOL, rtol=RTOL):
    a = np.asarray(a)
    b = np.asarray(b)
    assert a.shape == b.shape, f"shape {a.shape} != {b.shape}"
    assert np.allclose(a, b, atol=atol, rtol=rtol), f"max|diff|={np.max(np.abs(a-b))}"
