"""
Tests for partial volume correction by linear regression
"""
import pytest
import numpy as np

from aslfile import ShapeError, ConfigError
from aslfile.pvcorr import correct_pv, pv_regression

def _pvs(shape=(6, 6, 4), seed=1):
    rng = np.random.RandomState(seed)
    pv_gm = rng.uniform(0, 1, shape)
    pv_wm = (1 - pv_gm) * rng.uniform(0.2, 1, shape)
    return pv_gm, pv_wm

def test_recover_tissue_signals():
    """
    Data which exactly follows the mixing model with constant tissue signals
    """
    pv_gm, pv_wm = _pvs()
    mask = np.ones(pv_gm.shape)
    data = 60 * pv_gm + 20 * pv_wm
    result = pv_regression(data, mask, pv_gm, pv_wm, 1)
    assert not np.any(result.fallback)
    assert np.allclose(result.gm, 60)
    assert np.allclose(result.wm, 20)

def test_recover_tissue_signals_4d():
    pv_gm, pv_wm = _pvs()
    mask = np.ones(pv_gm.shape)
    gm_signal = [60, 70, 80]
    wm_signal = [20, 25, 30]
    data = np.stack([g * pv_gm + w * pv_wm for g, w in zip(gm_signal, wm_signal)], axis=-1)
    gm = correct_pv(data, mask, pv_gm, pv_wm, 1)
    wm = correct_pv(data, mask, pv_gm, pv_wm, 2, tissue="wm")
    assert gm.shape == data.shape
    for vol in range(3):
        assert np.allclose(gm[..., vol], gm_signal[vol])
        assert np.allclose(wm[..., vol], wm_signal[vol])

def test_single_compartment_identity():
    """
    Pure GM everywhere - regression is degenerate and the original signal is kept
    """
    shape = (5, 5, 3)
    data = np.random.rand(*shape, 4)
    mask = np.ones(shape)
    result = pv_regression(data, mask, np.ones(shape), np.zeros(shape), 1)
    assert np.all(result.fallback)
    assert np.array_equal(result.gm, data)

def test_outside_mask_zero():
    pv_gm, pv_wm = _pvs()
    mask = np.zeros(pv_gm.shape)
    mask[1:5, 1:5, 1:3] = 1
    data = 60 * pv_gm + 20 * pv_wm
    gm = correct_pv(data, mask, pv_gm, pv_wm, 1)
    assert np.all(gm[mask == 0] == 0)
    assert np.allclose(gm[mask > 0], 60)

def test_isolated_voxel_fallback():
    """
    A mask voxel with no masked neighbours has too few voxels for regression
    """
    pv_gm, pv_wm = _pvs()
    mask = np.zeros(pv_gm.shape)
    mask[3, 3, 2] = 1
    data = 60 * pv_gm + 20 * pv_wm
    result = pv_regression(data, mask, pv_gm, pv_wm, 1)
    assert result.fallback[3, 3, 2]
    assert np.count_nonzero(result.fallback) == 1
    assert result.gm[3, 3, 2] == data[3, 3, 2]

def test_nan_data():
    pv_gm, pv_wm = _pvs()
    mask = np.ones(pv_gm.shape)
    data = 60 * pv_gm + 20 * pv_wm
    data[2, 2, 2] = np.nan
    gm = correct_pv(data, mask, pv_gm, pv_wm, 1)
    assert np.all(np.isfinite(gm))

def test_does_not_modify_input():
    pv_gm, pv_wm = _pvs()
    data = 60 * pv_gm + 20 * pv_wm
    data[0, 0, 0] = np.nan
    orig = data.copy()
    correct_pv(data, np.ones(data.shape), pv_gm, pv_wm, 1)
    assert np.array_equal(data, orig, equal_nan=True)

def test_bad_kernel():
    pv_gm, pv_wm = _pvs()
    with pytest.raises(ConfigError):
        correct_pv(pv_gm, np.ones(pv_gm.shape), pv_gm, pv_wm, 0)
    with pytest.raises(ConfigError):
        correct_pv(pv_gm, np.ones(pv_gm.shape), pv_gm, pv_wm, -1)

def test_bad_tissue():
    pv_gm, pv_wm = _pvs()
    with pytest.raises(ConfigError):
        correct_pv(pv_gm, np.ones(pv_gm.shape), pv_gm, pv_wm, 1, tissue="csf")

def test_shape_mismatch():
    pv_gm, pv_wm = _pvs()
    with pytest.raises(ShapeError):
        correct_pv(np.random.rand(5, 5, 5), np.ones(pv_gm.shape), pv_gm, pv_wm, 1)
    with pytest.raises(ShapeError):
        correct_pv(pv_gm, np.ones(pv_gm.shape), pv_gm, np.ones((2, 2, 2)), 1)
