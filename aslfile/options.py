"""
ASLFILE - Command line option parsing

Options are defined in categories, each of which contributes one or more
``OptionGroup`` instances to the parser. Two additional option types are
supported:

 - ``image`` - Loaded as an ``fsl.data.image.Image``
 - ``matrix`` - Loaded as a 2D Numpy array from a space or comma separated text file

Options can also be read from a text file using ``--optfile``. Each line
contains one option in command line form, with or without the leading ``--``
and with the value separated by ``=``, ``:`` or whitespace.

Copyright (c) 2008-2020 University of Oxford
"""
import re
import sys
from optparse import OptionGroup, OptionParser, Option, OptionValueError
from copy import copy

from fsl.data.image import Image
from fsl.utils.path import PathError

from aslfile import __version__
from aslfile.workspace import text_to_matrix

def _check_image(option, opt, value):
    try:
        return Image(value)
    except (PathError, ValueError):
        raise OptionValueError("option %s: invalid image: %r" % (opt, value))

def _check_matrix(option, opt, value):
    try:
        with open(value, "r") as mfile:
            return text_to_matrix(mfile.read())
    except (IOError, ValueError):
        raise OptionValueError("option %s: invalid matrix file: %r" % (opt, value))

class _AslOption(Option):
    TYPES = Option.TYPES + ("image", "matrix",)
    TYPE_CHECKER = copy(Option.TYPE_CHECKER)
    TYPE_CHECKER["image"] = _check_image
    TYPE_CHECKER["matrix"] = _check_matrix

class AslOptionParser(OptionParser):
    """
    OptionParser which accepts option categories, image/matrix option types and
    options read from a file
    """
    def __init__(self, usage="", version=__version__, **kwargs):
        OptionParser.__init__(self, usage=usage, version=version, option_class=_AslOption, **kwargs)

    def add_category(self, category):
        """
        Add the option groups from an OptionCategory
        """
        for group in category.groups(self):
            self.add_option_group(group)

    def parse_args(self, argv=None, values=None):
        if argv is None:
            argv = sys.argv[1:]
        options, args = OptionParser.parse_args(self, argv, values)
        if getattr(options, "optfile", None):
            # File options go after the command line and are parsed the same way
            options, args = OptionParser.parse_args(self, list(argv) + _optfile_args(options.optfile), values)
        return options, args

def _optfile_args(fname):
    """
    :return: List of command line arguments from an options file
    """
    args = []
    with open(fname, "r") as ofile:
        for line in ofile:
            line = line.split("#", 1)[0].strip().lstrip("-")
            if not line:
                continue
            parts = re.split(r"[=:\s]+", line, maxsplit=1)
            args.append(("--" if len(parts[0]) > 1 else "-") + parts[0])
            args.extend(parts[1:])
    return args

class OptionCategory(object):
    """
    A named category of options
    """
    def __init__(self, name):
        self.name = name

    def groups(self, parser):
        """
        :param parser: OptionParser instance
        :return: Sequence of OptionGroup instances for this category of options
        """
        return []

class GenericOptions(OptionCategory):
    """
    Options common to all tools: output, mask, options file and debug mode
    """

    def __init__(self):
        OptionCategory.__init__(self, "generic")

    def groups(self, parser):
        group = OptionGroup(parser, "Generic")
        group.add_option("--output", "--out", "-o", help="Output directory", default=None)
        group.add_option("--overwrite", help="Overwrite output directory if it already exists", action="store_true", default=False)
        group.add_option("--mask", "-m", help="Mask image in native ASL space", default=None, type="image")
        group.add_option("--optfile", help="File containing additional options")
        group.add_option("--debug", help="Debug mode - show full traceback on error", action="store_true", default=False)
        return [group, ]
