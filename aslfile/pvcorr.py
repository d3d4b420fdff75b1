"""
ASLFILE - Partial volume correction by local linear regression

This implements the method of Asllani et al (MRM 2008) in which the signal in
each voxel is modelled as a mixture of grey matter (GM) and white matter (WM)
signals weighted by the partial volume fractions::

    signal(v, t) = pv_gm(v) * gm(t) + pv_wm(v) * wm(t)

The pure tissue signals ``gm(t)`` and ``wm(t)`` are assumed constant within a
small neighbourhood (kernel) around each voxel and are estimated by least squares
regression over the masked voxels in that neighbourhood, separately for each
time point.

Regression is not possible if there are too few voxels in the neighbourhood or
the partial volume fractions do not vary enough (for example a neighbourhood
which is entirely GM). In these cases the voxel keeps its uncorrected value
rather than failing the whole correction.

Copyright (c) 2008-2020 Univerisity of Oxford
"""
import collections
import functools

import numpy as np
import scipy.linalg

from .errors import ShapeError, ConfigError
from .fill import correct_nan

# Neighbourhoods whose design matrix has a larger condition number than this
# are not used for regression
MAX_CONDITION = 1e6

PvcResult = collections.namedtuple("PvcResult", ["gm", "wm", "fallback"])

def correct_pv(data, mask, pv_gm, pv_wm, kernel, tissue="gm"):
    """
    Partial volume correct ASL data

    :param data: 3D or 4D Numpy array
    :param mask: 3D Numpy array, voxels > 0 are corrected
    :param pv_gm: 3D Numpy array of GM partial volume fractions
    :param pv_wm: 3D Numpy array of WM partial volume fractions
    :param kernel: Half-width of the cubic regression neighbourhood in voxels (>= 1)
    :param tissue: ``gm`` or ``wm`` - which tissue signal to return
    :return: Numpy array, same shape as ``data`` containing the estimated pure tissue
             signal in the mask and zero elsewhere
    """
    if tissue not in ("gm", "wm"):
        raise ConfigError("Unknown tissue type: %s" % tissue, "tissue")
    return getattr(pv_regression(data, mask, pv_gm, pv_wm, kernel), tissue)

def pv_regression(data, mask, pv_gm, pv_wm, kernel):
    """
    Estimate pure GM and WM signals by local linear regression

    Non-finite data values are replaced using ``correct_nan`` before regression.

    :return: PvcResult with attributes ``gm``, ``wm`` (Numpy arrays with the same
             shape as ``data``) and ``fallback`` (3D boolean array which is True for
             voxels where regression was not possible and the uncorrected
             signal was used for both tissues)
    """
    if kernel is None or int(kernel) <= 0:
        raise ConfigError("Kernel size must be at least 1 voxel: %s" % kernel, "kernel")
    kernel = int(kernel)

    data = np.asarray(data, dtype=np.float64)
    mask = np.asarray(mask) > 0
    pv_gm = np.asarray(pv_gm, dtype=np.float64)
    pv_wm = np.asarray(pv_wm, dtype=np.float64)
    if data.ndim not in (3, 4):
        raise ShapeError("3D or 4D data expected", 4, data.ndim)
    for name, img in (("mask", mask), ("GM partial volume map", pv_gm), ("WM partial volume map", pv_wm)):
        if img.shape != data.shape[:3]:
            raise ShapeError("Data and %s have different dimensions" % name, data.shape[:3], img.shape)

    single_vol = data.ndim == 3
    if single_vol:
        data = data[..., np.newaxis]
    data = correct_nan(data)

    voxels = list(zip(*np.nonzero(mask)))
    regress = functools.partial(_regress_voxel, data=data, mask=mask, pv_gm=pv_gm, pv_wm=pv_wm, kernel=kernel)

    gm = np.zeros(data.shape, dtype=np.float64)
    wm = np.zeros(data.shape, dtype=np.float64)
    fallback = np.zeros(mask.shape, dtype=bool)
    for vox, coeffs in zip(voxels, map(regress, voxels)):
        if coeffs is None:
            fallback[vox] = True
            gm[vox] = data[vox]
            wm[vox] = data[vox]
        else:
            gm[vox], wm[vox] = coeffs

    if single_vol:
        gm, wm = gm[..., 0], wm[..., 0]
    return PvcResult(gm, wm, fallback)

def _regress_voxel(vox, data, mask, pv_gm, pv_wm, kernel):
    """
    Regression for a single voxel

    :return: 2 x T array of GM and WM signals, or None if the neighbourhood
             cannot be used
    """
    roi = tuple([slice(max(idx - kernel, 0), idx + kernel + 1) for idx in vox])
    roi_mask = mask[roi]
    design = np.column_stack([pv_gm[roi][roi_mask], pv_wm[roi][roi_mask]])
    signal = data[roi][roi_mask]

    finite = np.all(np.isfinite(design), axis=1)
    design, signal = design[finite], signal[finite]
    if design.shape[0] < design.shape[1]:
        return None

    svals = scipy.linalg.svdvals(design)
    if svals[-1] <= 0 or svals[0] / svals[-1] > MAX_CONDITION:
        return None

    coeffs, _, _, _ = scipy.linalg.lstsq(design, signal)
    return coeffs
