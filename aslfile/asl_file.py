#!/bin/env python
"""
ASL_FILE: Manipulation of ASL data files

Reorders, averages, splits and epochs multi-TI ASL data, and optionally
performs deconvolution with an arterial input function and partial volume
correction.

Copyright (c) 2008-2020 Univerisity of Oxford
"""
import os
import sys
import traceback

import numpy as np

from aslfile import Workspace
from aslfile.deconv import DEFAULT_TRUNCATION, deconv_stdform
from aslfile.errors import ConfigError
from aslfile.fill import extrapolate
from aslfile.image import default_mask, volume_to_matrix, matrix_to_volume, matrix_to_image
from aslfile.options import AslOptionParser, OptionCategory, OptionGroup, GenericOptions
from aslfile.pairs import separate_pairs, diff_pairs
from aslfile.pvcorr import pv_regression
from aslfile.reduce import time_means, epoch_means, gen_ti_epochs
from aslfile.stdform import AslLayout, to_stdform, from_stdform

class AslFileOptions(OptionCategory):
    """
    OptionCategory which contains options describing the input ASL data
    and the output format
    """

    def __init__(self, **kwargs):
        OptionCategory.__init__(self, "asl_file")

    def groups(self, parser):
        group = OptionGroup(parser, "ASL data")
        group.add_option("--data", "-i", dest="asldata", help="ASL data file", type="image")
        group.add_option("--ntis", help="Number of TIs/PLDs in the data", type="int")
        group.add_option("--ibf", help="Input block format: tis=blocks of TIs (all repeats of each TI together), rpt=blocks of repeats (TIs interleaved)", default="rpt")
        group.add_option("--iaf", help="Input ASL format: tc=label-control pairs, ct=control-label pairs, diff=differenced", default="diff")
        group.add_option("--obf", help="Output block format (tis or rpt). Default is the same as the input")
        group.add_option("--diff", help="Perform label-control subtraction", action="store_true", default=False)
        return [group, ]

class OutputOptions(OptionCategory):
    """
    OptionCategory which contains options for the outputs to generate
    """

    def __init__(self, **kwargs):
        OptionCategory.__init__(self, "output")

    def groups(self, parser):
        ret = []
        g = OptionGroup(parser, "Outputs")
        g.add_option("--split", help="Output each TI as a separate image", action="store_true", default=False)
        g.add_option("--mean", help="Output the mean at each TI", action="store_true", default=False)
        g.add_option("--spairs", help="Output the first and second images of each pair separately", action="store_true", default=False)
        ret.append(g)

        g = OptionGroup(parser, "Epochs")
        g.add_option("--epoch", help="Output epochs of the data", action="store_true", default=False)
        g.add_option("--elen", help="Length of epochs in repeats (or volumes if --eunit=tis)", type="int")
        g.add_option("--eol", help="Overlap of epochs in repeats (or volumes if --eunit=tis)", type="int", default=0)
        g.add_option("--eunit", help="Epoch units: rpt=repeats (mean at each TI is output for each epoch), tis=volumes of the data with TIs interleaved", default="rpt")
        ret.append(g)
        return ret

class CorrectionOptions(OptionCategory):
    """
    OptionCategory which contains options for deconvolution and partial volume correction
    """

    def __init__(self, **kwargs):
        OptionCategory.__init__(self, "corrections")

    def groups(self, parser):
        ret = []
        g = OptionGroup(parser, "Deconvolution")
        g.add_option("--deconv", help="Deconvolve the mean signal at each TI with an AIF", action="store_true", default=False)
        g.add_option("--aif", help="Voxelwise AIF image with one volume per TI", type="image")
        g.add_option("--aif-vec", help="Text file containing a single AIF with one value per TI", type="matrix")
        g.add_option("--svd-trunc", help="SVD truncation threshold as a fraction of the largest singular value", type="float", default=DEFAULT_TRUNCATION)
        ret.append(g)

        g = OptionGroup(parser, "Partial volume correction (linear regression)")
        g.add_option("--pvcorr", help="Perform partial volume correction", action="store_true", default=False)
        g.add_option("--pvgm", help="GM partial volume map in ASL space", type="image")
        g.add_option("--pvwm", help="WM partial volume map in ASL space", type="image")
        g.add_option("--kernel", help="Half-width of the regression kernel in voxels", type="int", default=2)
        g.add_option("--extrapolate", help="Fill in missing voxels in the mask from their neighbours", action="store_true", default=False)
        g.add_option("--neighbour", help="Half-width of the in-plane extrapolation neighbourhood in voxels", type="int", default=2)
        ret.append(g)
        return ret

def run(wsp):
    """
    Manipulate ASL data

    :param wsp: Workspace object

    Required workspace attributes
    -----------------------------

     - ``asldata`` : Image containing raw ASL data
     - ``ntis`` : Number of TIs/PLDs

    Optional workspace attributes
    -----------------------------

     - ``mask`` : Mask image. If not given, all voxels are used
     - ``ibf``, ``iaf`` : Input block format and ASL format (default: ``rpt``, ``diff``)
     - ``obf`` : Output block format (default: same as ``ibf``)
     - ``diff`` : If True, perform label-control subtraction
     - ``split``, ``mean``, ``spairs``, ``epoch``, ``deconv``, ``pvcorr``, ``extrapolate`` :
       Outputs to generate - see command line options for details

    Workspace attributes updated
    -----------------------------

     - ``asldata_out`` : Data in the output format
     - ``asldata_ti<n>``, ``asldata_mean``, ``asldata_odd``, ``asldata_even`` : Optional outputs
     - ``epochs`` : Sub-workspace containing ``epoch<n>`` images
     - ``deconv_residue``, ``deconv_magnitude`` : Deconvolution output
     - ``pvcorr_gm``, ``pvcorr_wm``, ``pvcorr_fallback``, ``pvcorr_nfallback`` : PV correction output
     - ``asldata_extrap`` : Extrapolated output data if PV correction not performed
    """
    if wsp.asldata is None:
        raise ValueError("Input ASL data not specified")
    if wsp.ntis is None:
        raise ValueError("Number of TIs not specified")

    wsp.log.write("\nASL data manipulation\n")
    layout = AslLayout.from_options(wsp.ntis, wsp.ibf, wsp.iaf)
    if wsp.diff and not layout.pairs:
        raise ConfigError("Data is already differenced - cannot perform label-control subtraction", "diff")
    wsp.out_layout = AslLayout.from_options(wsp.ntis, wsp.ifnone("obf", wsp.ibf), "diff" if wsp.diff else wsp.iaf)

    if wsp.mask is not None:
        wsp.mask_data = wsp.mask.data
    else:
        wsp.log.write(" - No mask provided - using all voxels\n")
        wsp.mask_data = default_mask(wsp.asldata)

    stdform = to_stdform(volume_to_matrix(wsp.asldata, wsp.mask_data), layout)
    wsp.log.write(" - Data contains %i voxels, %i TIs with repeats: %s\n" % (stdform.nvox, stdform.ntis, stdform.rpts))
    wsp.log.write(" - Input format: %s\n" % ("blocks of TIs" if layout.blocked else "TIs interleaved"))

    if wsp.spairs:
        # Pairs are taken from the data before any subtraction
        if not layout.pairs:
            raise ConfigError("Data is not label-control pairs - cannot separate pairs", "spairs")
        wsp.log.write(" - Separating pairs\n")
        odd, even = separate_pairs(stdform)
        single_layout = wsp.out_layout._replace(pairs=False)
        _save(wsp, "asldata_odd", from_stdform(odd, single_layout))
        _save(wsp, "asldata_even", from_stdform(even, single_layout))

    if wsp.diff:
        wsp.log.write(" - Label-control subtraction\n")
        stdform = diff_pairs(stdform, wsp.iaf)

    _save(wsp, "asldata_out", from_stdform(stdform, wsp.out_layout))

    if wsp.split:
        wsp.log.write(" - Splitting TIs\n")
        for idx, ti_data in enumerate(stdform):
            _save(wsp, "asldata_ti%i" % (idx+1), ti_data)

    if wsp.mean:
        wsp.log.write(" - Taking mean at each TI\n")
        _save(wsp, "asldata_mean", from_stdform(time_means(stdform), wsp.out_layout))

    if wsp.epoch:
        _epochs(wsp, stdform)

    if wsp.deconv:
        _deconv(wsp, stdform)

    if wsp.pvcorr:
        _pvcorr(wsp, stdform)
    elif wsp.extrapolate:
        wsp.log.write(" - Extrapolating missing voxels (neighbourhood: %i)\n" % wsp.ifnone("neighbour", 2))
        data = extrapolate(matrix_to_volume(from_stdform(stdform, wsp.out_layout), wsp.mask_data), wsp.mask_data, wsp.ifnone("neighbour", 2))
        _save(wsp, "asldata_extrap", volume_to_matrix(data, wsp.mask_data))

    wsp.log.write("DONE\n")

def _save(wsp, name, mtx, save_wsp=None):
    """
    Save a voxels x volumes matrix as an image in the workspace
    """
    if save_wsp is None:
        save_wsp = wsp
    img = matrix_to_image(mtx, wsp.mask_data, header=wsp.asldata.header, name=name)
    save_wsp.set_item(name, img)

def _epochs(wsp, stdform):
    if wsp.elen is None:
        raise ConfigError("Epoch length must be specified", "elen")
    epadv = wsp.elen - wsp.ifnone("eol", 0)
    eunit = wsp.ifnone("eunit", "rpt").lower()

    wsp.sub("epochs")
    wsp.log.write(" - Generating epochs of length %i, overlap %i (%s)\n" % (wsp.elen, wsp.elen - epadv, eunit))
    if eunit == "rpt":
        epochs = [from_stdform(epoch, wsp.out_layout) for epoch in epoch_means(stdform, epadv, wsp.elen)]
    elif eunit == "tis":
        interleaved = from_stdform(stdform, wsp.out_layout._replace(blocked=False))
        epochs = gen_ti_epochs(interleaved, epadv, wsp.elen)
    else:
        raise ConfigError("Unrecognized epoch unit: %s" % eunit, "eunit")

    for idx, epoch in enumerate(epochs):
        _save(wsp, "epoch%03i" % (idx+1), epoch, save_wsp=wsp.epochs)
    wsp.epochs.nepochs = len(epochs)
    wsp.log.write("   - %i epochs generated\n" % len(epochs))

def _deconv(wsp, stdform):
    if stdform.pairs:
        raise ConfigError("Deconvolution requires differenced data - use --diff", "deconv")

    if wsp.aif is not None:
        wsp.log.write(" - Deconvolution with voxelwise AIF: %s\n" % wsp.aif.name)
        aif = volume_to_matrix(wsp.aif, wsp.mask_data)
    elif wsp.aif_vec is not None:
        wsp.log.write(" - Deconvolution with AIF: %s\n" % wsp.aif_vec.ravel())
        aif = np.asarray(wsp.aif_vec).ravel()
    else:
        raise ConfigError("Deconvolution requires an AIF (--aif or --aif-vec)", "aif")

    truncation = wsp.ifnone("svd_trunc", DEFAULT_TRUNCATION)
    wsp.log.write("   - SVD truncation: %f\n" % truncation)
    residue, magnitude = deconv_stdform(stdform, aif, truncation)
    _save(wsp, "deconv_residue", residue)
    _save(wsp, "deconv_magnitude", magnitude)

def _pvcorr(wsp, stdform):
    if wsp.pvgm is None or wsp.pvwm is None:
        raise ConfigError("Partial volume correction requires GM and WM partial volume maps (--pvgm and --pvwm)", "pvcorr")

    kernel = wsp.ifnone("kernel", 2)
    wsp.log.write(" - Partial volume correction by linear regression (kernel: %i)\n" % kernel)
    data = matrix_to_volume(from_stdform(stdform, wsp.out_layout), wsp.mask_data)
    result = pv_regression(data, wsp.mask_data, wsp.pvgm.data, wsp.pvwm.data, kernel)

    wsp.pvcorr_nfallback = int(np.count_nonzero(result.fallback))
    if wsp.pvcorr_nfallback > 0:
        wsp.log.write("   - WARNING: regression not possible in %i voxels - uncorrected data used\n" % wsp.pvcorr_nfallback)

    gm, wm = result.gm, result.wm
    if wsp.extrapolate:
        wsp.log.write("   - Extrapolating missing voxels (neighbourhood: %i)\n" % wsp.ifnone("neighbour", 2))
        gm = extrapolate(gm, wsp.mask_data, wsp.ifnone("neighbour", 2))
        wm = extrapolate(wm, wsp.mask_data, wsp.ifnone("neighbour", 2))

    _save(wsp, "pvcorr_gm", volume_to_matrix(gm, wsp.mask_data))
    _save(wsp, "pvcorr_wm", volume_to_matrix(wm, wsp.mask_data))
    _save(wsp, "pvcorr_fallback", volume_to_matrix(result.fallback.astype(np.int8), wsp.mask_data))

def main():
    """
    Entry point for command line tool
    """
    debug = "--debug" in sys.argv
    try:
        parser = AslOptionParser(usage="asl_file --data=<filename> --ntis=<n> [options]")
        parser.add_category(GenericOptions())
        parser.add_category(AslFileOptions())
        parser.add_category(OutputOptions())
        parser.add_category(CorrectionOptions())

        options, _ = parser.parse_args()
        debug = options.debug
        if options.asldata is None:
            raise ValueError("Input ASL data not specified")
        if not options.output:
            options.output = "asl_file_out"
        if os.path.exists(options.output) and not options.overwrite:
            raise ValueError("Output directory %s already exists - use --overwrite to replace" % options.output)

        wsp = Workspace(savedir=options.output, **vars(options))
        run(wsp)

    except ValueError as exc:
        sys.stderr.write("ERROR: " + str(exc) + "\n")
        if debug:
            traceback.print_exc()
        sys.exit(1)

if __name__ == "__main__":
    main()
