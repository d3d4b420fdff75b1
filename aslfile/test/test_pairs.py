"""
Tests for separating, merging and subtracting pairs
"""
import pytest
import numpy as np

from aslfile import AslLayout, AslStdForm, to_stdform, ShapeError, ConfigError
from aslfile.pairs import separate_pairs, merge_pairs, diff_pairs

def test_separate_pairs_example():
    """
    2 TIs, 3 repeats, paired and blocked
    """
    raw = np.tile(np.arange(12, dtype=np.float64), (3, 1))
    stdform = to_stdform(raw, AslLayout(2, blocked=True, pairs=True))
    odd, even = separate_pairs(stdform)
    assert not odd.pairs
    assert not even.pairs
    assert odd[0].shape == (3, 3)
    assert even[0].shape == (3, 3)
    assert list(odd[0][0]) == [0, 2, 4]
    assert list(even[0][0]) == [1, 3, 5]
    assert list(odd[1][0]) == [6, 8, 10]
    assert list(even[1][0]) == [7, 9, 11]

def test_merge_roundtrip():
    stdform = AslStdForm([np.random.rand(7, 6), np.random.rand(7, 6), np.random.rand(7, 6)], pairs=True)
    merged = merge_pairs(*separate_pairs(stdform))
    assert merged == stdform

def test_merge_roundtrip_var_repeats():
    stdform = AslStdForm([np.random.rand(7, 2), np.random.rand(7, 8)], pairs=True)
    assert merge_pairs(*separate_pairs(stdform)) == stdform

def test_separate_odd_columns():
    stdform = AslStdForm([np.random.rand(7, 6), np.random.rand(7, 5)])
    with pytest.raises(ShapeError):
        separate_pairs(stdform)

def test_merge_shape_mismatch():
    odd = AslStdForm([np.random.rand(7, 3)])
    even = AslStdForm([np.random.rand(7, 4)])
    with pytest.raises(ShapeError):
        merge_pairs(odd, even)

def test_merge_ntis_mismatch():
    odd = AslStdForm([np.random.rand(7, 3)])
    even = AslStdForm([np.random.rand(7, 3), np.random.rand(7, 3)])
    with pytest.raises(ShapeError):
        merge_pairs(odd, even)

def test_diff_tc():
    label = np.random.rand(5, 3)
    ctrl = label + 2
    stdform = merge_pairs(AslStdForm([label]), AslStdForm([ctrl]))
    diff = diff_pairs(stdform, "tc")
    assert not diff.pairs
    assert diff[0].shape == (5, 3)
    assert np.allclose(diff[0], 2)

def test_diff_ct():
    label = np.random.rand(5, 3)
    ctrl = label + 2
    stdform = merge_pairs(AslStdForm([ctrl]), AslStdForm([label]))
    diff = diff_pairs(stdform, "ct")
    assert np.allclose(diff[0], 2)

def test_diff_not_paired():
    stdform = AslStdForm([np.random.rand(5, 4)])
    with pytest.raises(ShapeError):
        diff_pairs(stdform, "tc")

def test_diff_bad_iaf():
    stdform = AslStdForm([np.random.rand(5, 4)], pairs=True)
    with pytest.raises(ConfigError):
        diff_pairs(stdform, "diff")
