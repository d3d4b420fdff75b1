"""
ASLFILE - Filling in missing voxel values from their neighbours

Copyright (c) 2008-2020 Univerisity of Oxford
"""
import numpy as np
import scipy.ndimage

from .errors import ShapeError, ConfigError

def _neighbour_mean(values, valid, size):
    """
    Mean of valid values within a box around each voxel

    :param size: Box size in each dimension
    :return: Tuple of (mean, has_neighbours). ``mean`` is undefined (zero) where
             ``has_neighbours`` is False
    """
    # uniform_filter returns box means, so the ratio of the two is the masked mean
    sums = scipy.ndimage.uniform_filter(np.where(valid, values, 0), size, mode="constant", cval=0)
    counts = scipy.ndimage.uniform_filter(valid.astype(np.float64), size, mode="constant", cval=0)
    has_neighbours = counts > 0.5 / np.prod(size)
    mean = np.zeros(values.shape, dtype=np.float64)
    mean[has_neighbours] = sums[has_neighbours] / counts[has_neighbours]
    return mean, has_neighbours

def correct_nan(data):
    """
    Replace NaN and infinite values with the mean of the nearest finite values

    For each non-finite voxel the mean is taken over the finite voxels in the
    smallest cube centred on it (3x3x3, then 5x5x5, etc) which contains any. Only
    the original finite values are used, not values filled in by this function.
    If a volume contains no finite values at all, all voxels are set to zero.

    :param data: 3D or 4D Numpy array. 4D data is corrected one volume at a time
    :return: New Numpy array with the same shape as ``data``
    """
    data = np.array(data, dtype=np.float64)
    if data.ndim == 4:
        return np.stack([correct_nan(data[..., vol]) for vol in range(data.shape[3])], axis=-1)
    elif data.ndim != 3:
        raise ShapeError("3D or 4D data expected", 3, data.ndim)

    bad = ~np.isfinite(data)
    good = ~bad
    if not good.any():
        data[:] = 0
        return data
    elif not bad.any():
        return data

    # Half-width of the smallest cube around each bad voxel containing a finite voxel
    radius = scipy.ndimage.distance_transform_cdt(bad, metric="chessboard")
    for rad in np.unique(radius[bad]):
        fill = bad & (radius == rad)
        mean, _ = _neighbour_mean(data, good, 2 * int(rad) + 1)
        data[fill] = mean[fill]

    return data

def extrapolate(data, mask, neighbour_size):
    """
    Fill in missing values within a mask using neighbouring voxels

    A value is missing if it is not finite or is exactly zero (voxels which
    could not be estimated, e.g. by partial volume correction, are left as zero).
    Missing values in the mask are replaced with the mean of the non-missing mask
    voxels in the same slice and volume within ``neighbour_size`` voxels in x and y.

    Voxels which have no valid neighbours are set to zero and no error is raised.

    :param data: 3D or 4D Numpy array
    :param mask: 3D Numpy array, voxels > 0 are in the mask
    :param neighbour_size: Half-width of the in-plane neighbourhood in voxels (>= 1)
    :return: New Numpy array with the same shape as ``data``. Voxels outside the mask
             are unchanged
    """
    if neighbour_size is None or int(neighbour_size) <= 0:
        raise ConfigError("Neighbourhood size must be > 0: %s" % neighbour_size, "neighbour_size")
    neighbour_size = int(neighbour_size)

    data = np.array(data, dtype=np.float64)
    mask = np.asarray(mask) > 0
    if data.ndim not in (3, 4):
        raise ShapeError("3D or 4D data expected", 4, data.ndim)
    if data.shape[:3] != mask.shape[:3]:
        raise ShapeError("Data and mask have different dimensions", mask.shape[:3], data.shape[:3])

    if data.ndim == 4:
        return np.stack([extrapolate(data[..., vol], mask, neighbour_size) for vol in range(data.shape[3])], axis=-1)

    size = 2 * neighbour_size + 1
    valid = mask & np.isfinite(data) & (data != 0)
    missing = mask & ~valid
    mean, has_neighbours = _neighbour_mean(data, valid, (size, size, 1))

    data[missing] = 0
    fill = missing & has_neighbours
    data[fill] = mean[fill]
    return data
