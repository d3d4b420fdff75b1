"""
ASLFILE - Deconvolution of ASL data with an arterial input function

The tissue signal is modelled as the convolution of an arterial input function
(AIF) with a residue function. Writing the convolution as a matrix product
``data = C . residue``, where ``C`` is the lower-triangular convolution matrix of
the AIF, the residue is recovered using the pseudo-inverse of ``C`` computed from
its singular value decomposition.

Deconvolution is ill-posed, so singular values smaller than a fraction
(``truncation``) of the largest are discarded before inversion. Larger values give
smoother, more biased residue functions.

Copyright (c) 2008-2020 Univerisity of Oxford
"""
import numpy as np
import scipy.linalg

from .errors import ShapeError, ConfigError, NumericalError
from .reduce import time_means

DEFAULT_TRUNCATION = 0.2

def convmtx(aif):
    """
    Create a simple convolution matrix

    :param aif: 1D sequence of N values
    :return: N x N lower triangular matrix. Column j contains the AIF delayed by j samples
    """
    aif = np.asarray(aif, dtype=np.float64)
    if aif.ndim != 1:
        raise ShapeError("AIF must be a 1D vector", 1, aif.ndim)
    return scipy.linalg.toeplitz(aif, np.zeros(len(aif)))

def svd_deconv(data, aif, truncation=DEFAULT_TRUNCATION):
    """
    Deconvolve data with an AIF using truncated SVD

    :param data: 2D Numpy array, N time points x voxels (or 1D array for a single voxel)
    :param aif: Either a 1D array of N values used for every voxel, or a 2D array
                of N x voxels giving an AIF for each voxel
    :param truncation: Singular values less than this fraction of the maximum are discarded
    :return: Residue functions, same shape as ``data``
    """
    if truncation is None or not 0 <= truncation < 1:
        raise ConfigError("SVD truncation must be in the range [0, 1): %s" % truncation, "truncation")

    data = np.asarray(data, dtype=np.float64)
    single_voxel = data.ndim == 1
    if single_voxel:
        data = data[:, np.newaxis]
    if data.ndim != 2:
        raise ShapeError("Data for deconvolution must be a 2D matrix", 2, data.ndim)

    aif = np.asarray(aif, dtype=np.float64)
    if aif.ndim not in (1, 2):
        raise ShapeError("AIF must be a 1D or 2D array", 2, aif.ndim)
    if aif.shape[0] != data.shape[0]:
        raise ShapeError("AIF has different number of time points to data", data.shape[0], aif.shape[0])

    if aif.ndim == 1:
        residue = _svd_inverse(aif, truncation).dot(data)
    else:
        if aif.shape[1] != data.shape[1]:
            raise ShapeError("Voxelwise AIF has different number of voxels to data", data.shape[1], aif.shape[1])
        residue = np.zeros(data.shape, dtype=np.float64)
        for vox in range(data.shape[1]):
            residue[:, vox] = _svd_inverse(aif[:, vox], truncation).dot(data[:, vox])

    if single_voxel:
        residue = residue[:, 0]
    return residue

def _svd_inverse(aif, truncation):
    """
    :return: Truncated pseudo-inverse of the convolution matrix for an AIF
    """
    if not np.all(np.isfinite(aif)):
        raise NumericalError("AIF contains non-finite values")

    cmat = convmtx(aif)
    u, s, vt = scipy.linalg.svd(cmat)
    smax = s.max()
    if smax <= np.finfo(np.float64).eps * len(s):
        raise NumericalError("Convolution matrix has no usable singular values - AIF is zero")

    keep = (s >= truncation * smax) & (s > 0)
    s_inv = np.zeros(len(s))
    s_inv[keep] = 1 / s[keep]
    return vt.T.dot(s_inv[:, np.newaxis] * u.T)

def deconv_stdform(stdform, aif, truncation=DEFAULT_TRUNCATION):
    """
    Deconvolve the mean signal at each TI with an AIF

    The mean over repeats is taken at each TI to give a time series with one
    point per TI in each voxel, which is then deconvolved.

    :param stdform: Unpaired AslStdForm, e.g. after label-control subtraction
    :param aif: Either a 1D array with one value per TI, or a 2D array of voxels x TIs
                giving the AIF in each voxel (the same orientation as the data)
    :param truncation: SVD truncation fraction
    :return: Tuple of (residue, magnitude). Residue is a voxels x TIs array, magnitude
             is a voxels x 1 array containing the maximum of the residue function
    """
    if stdform.pairs:
        raise ShapeError("Data must be differenced before deconvolution")

    means = np.concatenate(time_means(stdform).tis, axis=1)
    aif = np.asarray(aif, dtype=np.float64)
    if aif.ndim == 2:
        if aif.shape != means.shape:
            raise ShapeError("Voxelwise AIF does not match data", means.shape, aif.shape)
        aif = aif.T

    residue = svd_deconv(means.T, aif, truncation).T
    magnitude = np.max(residue, axis=1, keepdims=True)
    return residue, magnitude
