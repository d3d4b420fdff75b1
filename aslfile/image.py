"""
ASLFILE - Conversion between image volumes and voxel x time matrices

All of the ASL data manipulation in this package works on 2D matrices in which
each row is a voxel within a mask and each column is a volume (time point). These
functions convert between this form and 3D/4D volumes, either Numpy arrays or
``fsl.data.image.Image`` instances.

Copyright (c) 2008-2020 Univerisity of Oxford
"""
import numpy as np

from fsl.data.image import Image

from .errors import ShapeError

def _array(data):
    if isinstance(data, Image):
        return data.data
    return np.asarray(data)

def default_mask(data):
    """
    Mask which includes every voxel in a volume

    :param data: 3D or 4D Numpy array or Image
    :return: 3D Numpy integer array of ones with the spatial shape of the data
    """
    return np.ones(_array(data).shape[:3], dtype=np.int8)

def volume_to_matrix(data, mask):
    """
    Extract the voxels within a mask as a matrix

    :param data: 3D or 4D Numpy array or Image
    :param mask: 3D Numpy array or Image. Voxels with value > 0 are included
    :return: 2D Numpy array with one row per mask voxel and one column per volume.
             Voxel order is the Numpy (C) ordering of the mask
    """
    data, mask = _array(data), _array(mask)
    if data.ndim not in (3, 4):
        raise ShapeError("3D or 4D data expected", 4, data.ndim)
    if data.shape[:3] != mask.shape[:3]:
        raise ShapeError("Data and mask have different dimensions", mask.shape[:3], data.shape[:3])

    if data.ndim == 3:
        data = data[..., np.newaxis]
    return np.array(data[mask > 0], dtype=np.float64)

def matrix_to_volume(mtx, mask):
    """
    Inverse of ``volume_to_matrix``

    :param mtx: 2D Numpy array with one row per mask voxel (or 1D array, treated as a single column)
    :param mask: 3D Numpy array or Image
    :return: Numpy array with zeros outside the mask. 3D if the matrix had a single
             column, otherwise 4D
    """
    mtx, mask = np.asarray(mtx), _array(mask)
    if mtx.ndim == 1:
        mtx = mtx[:, np.newaxis]

    nvox = np.count_nonzero(mask > 0)
    if mtx.shape[0] != nvox:
        raise ShapeError("Number of matrix rows does not match the number of mask voxels", nvox, mtx.shape[0])

    vol = np.zeros(list(mask.shape[:3]) + [mtx.shape[1]], dtype=mtx.dtype)
    vol[mask > 0] = mtx
    if mtx.shape[1] == 1:
        vol = vol[..., 0]
    return vol

def matrix_to_image(mtx, mask, header=None, name=None):
    """
    Convert a voxel x time matrix to an Image

    :param mtx: 2D Numpy array
    :param mask: Image or 3D Numpy array defining the voxels corresponding to the matrix rows
    :param header: Optional Nifti header. If not given and the mask is an Image its header is used
    :param name: Optional name for the image
    """
    if header is None and isinstance(mask, Image):
        header = mask.header
    return Image(matrix_to_volume(mtx, mask), name=name, header=header)
