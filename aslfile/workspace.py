"""
Workspace for saving the output of ASL data processing

A workspace is an object whose attributes are the images and data generated
by processing. It is backed by a directory, and setting an attribute saves
supported data types there automatically:

 - ``fsl.data.image.Image`` - saved as Nifti
 - 2D Numpy array - saved as an ASCII matrix (``.mat``)
 - int, float and string values - saved in ``_aslfile.yml``

Requesting an attribute which has not been set returns None rather than raising
an exception, so options which were not given can be tested directly::

    wsp = Workspace(savedir="out")
    wsp.mean = Image(data)     # Saves out/mean.nii.gz
    print(wsp.wibble)          # prints None
"""
import os
import sys
import errno
import glob
import shutil
import tempfile

import numpy as np
import yaml

from fsl.data.image import Image

from .utils import Tee

class Workspace(object):
    """
    Directory-backed store for processing output
    """

    def __init__(self, savedir=None, log=None, **kwargs):
        """
        Create workspace

        :param savedir: If specified, use this path to save data. Will be created
                        if it does not already exist. If not specified a temporary
                        directory is used
        :param log: Stream to write log output to. If not specified, output goes
                    to ``sys.stdout`` and a file named ``logfile`` in the save directory
        :param kwargs: Initial attributes, e.g. from command line options. These are
                       not saved
        """
        if savedir is not None:
            savedir = mkdir(savedir, log=log or sys.stdout)
        else:
            savedir = tempfile.mkdtemp(prefix="aslfile_wsp")
        self.set_item("savedir", savedir, save=False)
        self.set_item("_stuff", {}, save=False)

        if log is None:
            log = Tee(sys.stdout, open(os.path.join(savedir, "logfile"), "w"))
        self.set_item("log", log, save=False)

        for key, value in kwargs.items():
            self.set_item(key, value, save=False)

    def __getattr__(self, name):
        # Only called if normal attribute lookup fails
        if name.startswith("__"):
            raise AttributeError(name)
        return None

    def __setattr__(self, name, value):
        self.set_item(name, value)

    def ifnone(self, attr, alternative):
        """
        Return the value of an attribute, if set and not None, or
        otherwise the supplied alternative
        """
        ret = getattr(self, attr, None)
        if ret is None:
            ret = alternative
        return ret

    def set_item(self, name, value, save=True):
        """
        Add an item to the workspace

        Normally this is done by assigning to an attribute, however this method
        allows the item not to be saved.

        :param name: Name, must be a valid Python identifier
        :param value: Value to set
        :param save: If False, do not save item
        """
        if save and not name.startswith("_"):
            # Remove any existing saved data - the file type may have changed
            for existing_file in glob.glob(os.path.join(self.savedir, "%s.*" % name)):
                os.remove(existing_file)

            if isinstance(value, Image):
                value.save(os.path.join(self.savedir, name))
            elif isinstance(value, np.ndarray) and value.ndim == 2:
                with open(os.path.join(self.savedir, name + ".mat"), "w") as tfile:
                    tfile.write(matrix_to_text(value))
            elif isinstance(value, (bool, int, float, str)):
                self._stuff[name] = value
                self._save_stuff()

        super(Workspace, self).__setattr__(name, value)

    def sub(self, name, **kwargs):
        """
        Create a sub-workspace in a subdirectory of this workspace

        The sub-workspace shares the log stream of this workspace and is
        available as an attribute with the given name
        """
        savedir = os.path.join(self.savedir, name)
        if os.path.isdir(savedir):
            shutil.rmtree(savedir)
        sub_wsp = Workspace(savedir=savedir, log=self.log, **kwargs)
        self.set_item(name, sub_wsp, save=False)
        return sub_wsp

    def _save_stuff(self):
        with open(os.path.join(self.savedir, "_aslfile.yml"), "w") as tfile:
            yaml.dump(self._stuff, tfile, default_flow_style=False)

def matrix_to_text(mat):
    """
    Convert matrix array to text using spaces/newlines as col/row delimiters
    """
    rows = []
    for row in mat:
        rows.append(" ".join([str(v) for v in row]))
    return "\n".join(rows)

def text_to_matrix(text):
    """
    Convert space or comma separated text to a matrix

    Comments starting with ``#`` and blank lines are ignored
    """
    fvals = []
    ncols = -1
    for line in text.splitlines():
        line = line.split("#", 1)[0].strip()
        vals = line.replace(",", " ").split()
        if not vals:
            continue
        if ncols < 0:
            ncols = len(vals)
        elif len(vals) != ncols:
            raise ValueError("File must contain a matrix of numbers with fixed size (rows/columns)")
        try:
            fvals.append([float(v) for v in vals])
        except ValueError:
            raise ValueError("Non-numeric value found in matrix text: %s" % line)
    return np.array(fvals)

def mkdir(dirname, fail_if_exists=False, warn_if_exists=True, log=sys.stdout):
    """
    Create a directory, including necessary subdirs
    """
    try:
        os.makedirs(dirname)
    except OSError as exc:
        if exc.errno == errno.EEXIST:
            if fail_if_exists:
                raise
            elif warn_if_exists:
                log.write("WARNING: mkdir - Directory %s already exists\n" % dirname)
        else:
            raise
    return os.path.abspath(dirname)
