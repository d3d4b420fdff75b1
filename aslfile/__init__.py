"""
ASLFILE - Python package for manipulating multi-TI ASL data
===========================================================

Copyright (c) 2008-2020 University of Oxford

This package reorders, averages and splits multi-TI ASL data and provides
deconvolution and partial volume correction of the result.

Design
------

Voxel x volume matrices
~~~~~~~~~~~~~~~~~~~~~~~
All operations work on 2D Numpy arrays with one row for each voxel within a
mask and one column for each volume. The ``image`` module converts between
these and 3D/4D volumes::

    raw = volume_to_matrix(img, mask)
    img = matrix_to_image(raw, mask, header=img.header)

Standard form
~~~~~~~~~~~~~
The ``stdform`` module converts raw data in acquisition order into *standard
form*, an ``AslStdForm`` containing one matrix for each TI/PLD. The ordering of
the raw data is described by an ``AslLayout`` which is created once and used
for both directions of the conversion::

    layout = AslLayout(ntis=5, blocked=False, pairs=True)
    stdform = to_stdform(raw, layout)
    raw = from_stdform(stdform, layout)

Standard form data can be used by the other modules:

 - :mod:`pairs` - Separating/merging label-control pairs and label-control subtraction
 - :mod:`reduce` - Mean at each TI and generation of epochs
 - :mod:`deconv` - Truncated SVD deconvolution with an arterial input function
 - :mod:`pvcorr` - Partial volume correction by local linear regression
 - :mod:`fill` - Correction of NaN values and extrapolation of missing voxels

Errors
~~~~~~
Invalid data shapes and parameters raise ``ShapeError`` and ``ConfigError``.
Deconvolution with an unusable AIF raises ``NumericalError``. All are subclasses
of ``ValueError``.

Command line tool
~~~~~~~~~~~~~~~~~
The ``asl_file`` module implements the ``asl_file`` command line tool. Output
is saved in a ``Workspace`` directory::

    asl_file --data=asldata.nii.gz --ntis=5 --iaf=tc --diff --mean -o out
"""

try:
    from ._version import __version__, __timestamp__
except ImportError:
    __version__ = "unknown"
    __timestamp__ = "unknown"

from .errors import ShapeError, ConfigError, NumericalError
from .stdform import AslLayout, AslStdForm, to_stdform, from_stdform
from .workspace import Workspace

# Work around ugly FSL log message
import logging
logging.basicConfig()
logging.getLogger("fsl.utils.platform").setLevel(logging.CRITICAL)

__all__ = [
    "__version__",
    "AslLayout",
    "AslStdForm",
    "to_stdform",
    "from_stdform",
    "Workspace",
    "ShapeError",
    "ConfigError",
    "NumericalError",
]
