"""
ASLFILE - Separating, merging and subtracting label/control pairs

Copyright (c) 2008-2020 Univerisity of Oxford
"""
import numpy as np

from .errors import ShapeError, ConfigError
from .stdform import AslStdForm

def separate_pairs(stdform):
    """
    Separate the images in each pair into two standard form data sets

    :param stdform: AslStdForm. Every TI must have an even number of columns
    :return: Tuple of (odd, even) AslStdForm instances (unpaired). ``odd`` contains the
             1st, 3rd, 5th... columns at each TI (e.g. the label images for ``iaf=tc``),
             ``even`` contains the 2nd, 4th, 6th... columns
    """
    for idx, ncols in enumerate(stdform.ncols):
        if ncols % 2 != 0:
            raise ShapeError("Cannot separate pairs - TI %i has an odd number of volumes: %i" % (idx, ncols))

    odd = [ti_data[:, 0::2] for ti_data in stdform]
    even = [ti_data[:, 1::2] for ti_data in stdform]
    return AslStdForm(odd, pairs=False), AslStdForm(even, pairs=False)

def merge_pairs(odd, even):
    """
    Merge two standard form data sets into paired data

    This is the inverse of ``separate_pairs``

    :param odd: AslStdForm containing the first image of each pair
    :param even: AslStdForm containing the second image of each pair
    :return: Paired AslStdForm with columns alternating odd, even
    """
    if len(odd) != len(even):
        raise ShapeError("Cannot merge pairs - different numbers of TIs", len(odd), len(even))

    merged = []
    for idx, (odd_data, even_data) in enumerate(zip(odd, even)):
        if odd_data.shape != even_data.shape:
            raise ShapeError("Cannot merge pairs - shapes differ at TI %i" % idx, odd_data.shape, even_data.shape)
        ti_data = np.zeros((odd_data.shape[0], odd_data.shape[1] * 2), dtype=np.result_type(odd_data, even_data))
        ti_data[:, 0::2] = odd_data
        ti_data[:, 1::2] = even_data
        merged.append(ti_data)
    return AslStdForm(merged, pairs=True)

def diff_pairs(stdform, iaf="tc"):
    """
    Perform label-control subtraction

    :param stdform: Paired AslStdForm
    :param iaf: ``tc`` if the label image is first in each pair, ``ct`` if the control
                image is first
    :return: Unpaired AslStdForm containing control - label for each repeat
    """
    if iaf not in ("tc", "ct"):
        raise ConfigError("Data is not label-control pairs - cannot difference: %s" % iaf, "iaf")
    if not stdform.pairs:
        raise ShapeError("Data is not paired - cannot difference")

    odd, even = separate_pairs(stdform)
    if iaf == "tc":
        label, ctrl = odd, even
    else:
        label, ctrl = even, odd
    return AslStdForm([c - l for c, l in zip(ctrl, label)], pairs=False)
