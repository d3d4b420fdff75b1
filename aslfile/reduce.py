"""
ASLFILE - Averaging and epoch generation for standard form data

Epochs
------

An epoch is a window of ``epol`` repeats. Successive epochs start ``epadv``
repeats apart, so epochs overlap if ``epadv < epol``. For paired data a repeat
is a pair of images so the windows are twice as many columns wide.

If the repeats do not divide exactly into epochs, the final epoch is truncated
at the end of the data rather than dropped, so every repeat is contained in at
least one epoch (provided ``epadv <= epol``). Epoch generation stops as soon as
an epoch reaches the last repeat.

Copyright (c) 2008-2020 Univerisity of Oxford
"""
import warnings

import numpy as np

from .errors import ShapeError, ConfigError
from .pairs import separate_pairs, merge_pairs

def time_means(stdform):
    """
    Take the mean over repeats at each TI

    :param stdform: AslStdForm
    :return: AslStdForm with one column per TI, or two for paired data (mean of the first
             and second images of each pair)
    """
    for idx, ncols in enumerate(stdform.ncols):
        if ncols == 0:
            raise ShapeError("No data at TI %i - cannot take mean" % idx)

    if stdform.pairs:
        odd, even = separate_pairs(stdform)
        return merge_pairs(time_means(odd), time_means(even))
    else:
        return stdform.derived([np.mean(ti_data, axis=1, keepdims=True) for ti_data in stdform])

def epoch_windows(nunits, epadv, epol):
    """
    Get the start and end of each epoch

    :param nunits: Total number of repeats (or volumes) to divide into epochs
    :param epadv: Number of units between the start of successive epochs
    :param epol: Number of units in each epoch
    :return: List of (start, end) tuples in units. ``end`` is exclusive
    """
    epadv, epol = _check_epochs(epadv, epol)
    windows = []
    start = 0
    while start < nunits:
        end = min(start + epol, nunits)
        windows.append((start, end))
        if end == nunits:
            break
        start += epadv
    return windows

def gen_epochs(stdform, epadv, epol):
    """
    Divide standard form data into epochs

    :param stdform: AslStdForm. All TIs must have the same number of repeats
    :param epadv: Epoch advance in repeats
    :param epol: Epoch length in repeats
    :return: List of AslStdForm, one per epoch
    """
    rpts = stdform.rpts
    if min(rpts) != max(rpts):
        raise ShapeError("Epochs require the same number of repeats at each TI: %s" % rpts)

    ntc = stdform.ntc
    epochs = []
    for start, end in epoch_windows(rpts[0], epadv, epol):
        epochs.append(stdform.derived([ti_data[:, start*ntc:end*ntc] for ti_data in stdform]))
    return epochs

def gen_ti_epochs(mtx, epadv, epol):
    """
    Divide a single matrix into epochs of columns

    This is used for epochs measured in volumes rather than repeats, e.g. on
    raw data with interleaved TIs

    :param mtx: 2D Numpy array, voxels x volumes
    :param epadv: Epoch advance in volumes
    :param epol: Epoch length in volumes
    :return: List of 2D Numpy arrays, one per epoch
    """
    mtx = np.asarray(mtx)
    if mtx.ndim != 2:
        raise ShapeError("Epochs require a 2D matrix", 2, mtx.ndim)
    return [mtx[:, start:end] for start, end in epoch_windows(mtx.shape[1], epadv, epol)]

def epoch_means(stdform, epadv, epol):
    """
    Divide data into epochs and take the mean at each TI within each epoch

    :return: List of AslStdForm, one per epoch, as returned by ``time_means``
    """
    return [time_means(epoch) for epoch in gen_epochs(stdform, epadv, epol)]

def _check_epochs(epadv, epol):
    """
    :return: Tuple of (epadv, epol) as integers
    """
    for name, value in (("epadv", epadv), ("epol", epol)):
        if value is None or value <= 0 or int(value) != value:
            raise ConfigError("Epoch advance and length must be positive integers: %s" % value, name)
    epadv, epol = int(epadv), int(epol)
    if epadv > epol:
        warnings.warn("Epoch advance (%i) is greater than epoch length (%i) - some data will not be in any epoch" % (epadv, epol))
    return epadv, epol
