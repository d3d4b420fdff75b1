"""
ASLFILE - Conversion of raw ASL data to and from standard form

Raw ASL data is a matrix of voxels x volumes in acquisition order. The volumes
are a mixture of TIs/PLDs, repeats and (optionally) label/control pairs. The
*standard form* of the data is a list containing one matrix for each TI. Each
matrix contains all the repeats for that TI in acquisition order, with the
label/control images alternating if the data is paired.

The ordering of the raw data is described by an ``AslLayout``:

 - ``ntis`` - number of TIs/PLDs
 - ``blocked`` - If True, all the repeats of each TI are acquired together (TI1
   repeat 1, TI1 repeat 2, ..., TI2 repeat 1...). Otherwise the TIs are interleaved
   and cycle fastest (TI1 repeat 1, TI2 repeat 1, ..., TI1 repeat 2...)
 - ``pairs`` - If True, the data contains label/control pairs. The images in each
   pair are always adjacent.

For example with 2 TIs, 3 repeats, blocked and paired the 12 raw volumes are
``L1 C1 L1 C1 L1 C1 L2 C2 L2 C2 L2 C2``, and the standard form is two matrices
each with 6 columns ``L C L C L C``.

Converting raw -> standard -> raw with the same layout returns exactly the
original data - the conversion is just a reordering of columns.

Copyright (c) 2008-2020 Univerisity of Oxford
"""
import collections

import numpy as np

from .errors import ShapeError, ConfigError

class AslLayout(collections.namedtuple("AslLayout", ["ntis", "blocked", "pairs"])):
    """
    Describes the ordering of volumes in raw ASL data

    :ivar ntis: Number of TIs/PLDs
    :ivar blocked: True if the repeats of each TI are contiguous
    :ivar pairs: True if the data contains label/control pairs
    """

    def __new__(cls, ntis, blocked=False, pairs=False):
        try:
            ntis = int(ntis)
        except (TypeError, ValueError):
            raise ConfigError("Number of TIs must be an integer: %s" % ntis, "ntis")
        if ntis <= 0:
            raise ConfigError("Number of TIs must be > 0: %i" % ntis, "ntis")
        return super(AslLayout, cls).__new__(cls, ntis, bool(blocked), bool(pairs))

    @classmethod
    def from_options(cls, ntis, ibf="rpt", iaf="diff"):
        """
        Create a layout from command line style format strings

        :param ntis: Number of TIs/PLDs
        :param ibf: Input block format. ``tis`` = blocks of TIs (all repeats of each TI
                    together), ``rpt`` = blocks of repeats (TIs interleaved)
        :param iaf: Input ASL format. ``tc`` or ``ct`` for label/control pairs, ``diff``
                    for differenced (single) data
        """
        ibf = (ibf or "rpt").lower()
        iaf = (iaf or "diff").lower()
        if ibf not in ("tis", "rpt"):
            raise ConfigError("Unrecognized data block format: %s" % ibf, "ibf")
        if iaf not in ("tc", "ct", "diff"):
            raise ConfigError("Unrecognized data format: %s" % iaf, "iaf")
        return cls(ntis, blocked=(ibf == "tis"), pairs=(iaf != "diff"))

    @property
    def ntc(self):
        """
        Number of images acquired at each TI/repeat, 2 for paired data otherwise 1
        """
        return 2 if self.pairs else 1

class AslStdForm(object):
    """
    ASL data in standard form - one matrix per TI

    Each matrix has one row per voxel and columns containing all the repeats
    at the TI in acquisition order. If ``pairs`` is True, the columns alternate
    between the first and second image of each pair (e.g. label/control).

    Instances behave as a read-only sequence of the TI matrices. Operations on
    standard form data return new instances rather than modifying existing ones.
    """

    def __init__(self, tis, pairs=False):
        self._tis = [np.asarray(ti_data) for ti_data in tis]
        self.pairs = bool(pairs)
        if not self._tis:
            raise ShapeError("Standard form data must contain at least one TI")

        for idx, ti_data in enumerate(self._tis):
            if ti_data.ndim != 2:
                raise ShapeError("Data for TI %i is not a 2D matrix" % idx, 2, ti_data.ndim)
            if ti_data.shape[0] != self.nvox:
                raise ShapeError("Data for TI %i has inconsistent number of voxels" % idx, self.nvox, ti_data.shape[0])
            if self.pairs and ti_data.shape[1] % 2 != 0:
                raise ShapeError("Paired data for TI %i has an odd number of volumes: %i" % (idx, ti_data.shape[1]))

    def __len__(self):
        return len(self._tis)

    def __getitem__(self, idx):
        return self._tis[idx]

    def __iter__(self):
        return iter(self._tis)

    def __eq__(self, other):
        if not isinstance(other, AslStdForm):
            return NotImplemented
        if self.pairs != other.pairs or len(self) != len(other):
            return False
        return all([a.shape == b.shape and np.array_equal(a, b) for a, b in zip(self, other)])

    def __ne__(self, other):
        ret = self.__eq__(other)
        if ret is NotImplemented:
            return ret
        return not ret

    def __repr__(self):
        return "AslStdForm(ntis=%i, nvox=%i, ncols=%s, pairs=%s)" % (len(self), self.nvox, self.ncols, self.pairs)

    @property
    def tis(self):
        """
        List of per-TI matrices
        """
        return list(self._tis)

    @property
    def ntis(self):
        return len(self._tis)

    @property
    def nvox(self):
        return self._tis[0].shape[0]

    @property
    def ncols(self):
        """
        Number of columns in each TI matrix
        """
        return [ti_data.shape[1] for ti_data in self._tis]

    @property
    def ntc(self):
        return 2 if self.pairs else 1

    @property
    def rpts(self):
        """
        Number of repeats at each TI (pairs count as a single repeat)
        """
        return [int(ncols / self.ntc) for ncols in self.ncols]

    def derived(self, tis, pairs=None):
        """
        Create new standard form data with the same pairing as this unless specified
        """
        if pairs is None:
            pairs = self.pairs
        return AslStdForm(tis, pairs=pairs)

def to_stdform(raw, layout):
    """
    Convert raw ASL data into standard form

    :param raw: 2D Numpy array, voxels x volumes in acquisition order
    :param layout: AslLayout describing the ordering of the volumes
    :return: AslStdForm
    """
    raw = np.asarray(raw)
    if raw.ndim != 2:
        raise ShapeError("Raw ASL data must be a 2D matrix", 2, raw.ndim)

    nvols = raw.shape[1]
    if nvols % layout.ntis != 0:
        raise ShapeError("%i volumes cannot be divided between %i TIs" % (nvols, layout.ntis))

    ncols = nvols // layout.ntis
    if layout.pairs and ncols % 2 != 0:
        raise ShapeError("Paired data has an odd number of volumes (%i) at each TI" % ncols)

    tis = []
    for ti in range(layout.ntis):
        tis.append(raw[:, _ti_columns(ti, ncols, layout)])
    return AslStdForm(tis, pairs=layout.pairs)

def from_stdform(stdform, layout):
    """
    Convert standard form data back to raw data

    For blocked output the TIs may have different numbers of repeats. For
    interleaved output all TIs must have the same number of repeats.

    :param stdform: AslStdForm
    :param layout: AslLayout describing the required output ordering. ``layout.ntis``
                   must match the number of TIs in the data
    :return: 2D Numpy array, voxels x volumes
    """
    if layout.ntis != stdform.ntis:
        raise ShapeError("Output layout has wrong number of TIs", stdform.ntis, layout.ntis)
    if layout.pairs and any([ncols % 2 != 0 for ncols in stdform.ncols]):
        raise ShapeError("Paired output requested but data has an odd number of volumes at some TIs: %s" % stdform.ncols)

    if layout.blocked:
        return np.concatenate(stdform.tis, axis=1)

    ncols = stdform.ncols
    if min(ncols) != max(ncols):
        raise ShapeError("Interleaved output requires the same number of volumes at each TI: %s" % ncols)

    raw = np.zeros((stdform.nvox, ncols[0] * stdform.ntis), dtype=np.result_type(*stdform.tis))
    for ti, ti_data in enumerate(stdform):
        raw[:, _ti_columns(ti, ncols[0], layout)] = ti_data
    return raw

def _ti_columns(ti, ncols, layout):
    """
    :return: Indices of the raw data columns belonging to a TI, in the order
             they occur in the standard form
    """
    if layout.blocked:
        return np.arange(ti * ncols, (ti + 1) * ncols)

    # Interleaved: each acquisition unit (single image or pair) cycles through
    # the TIs, images within a pair stay adjacent
    ntc = layout.ntc
    units = np.arange(ncols // ntc) * layout.ntis + ti
    return (units[:, np.newaxis] * ntc + np.arange(ntc)).ravel()
