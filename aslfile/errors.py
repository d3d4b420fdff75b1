"""
ASLFILE - Exceptions raised by ASL data manipulation functions

These all derive from ``ValueError`` so that command line tools can report
them in the same way as any other invalid input.

Copyright (c) 2008-2020 Univerisity of Oxford
"""

class ShapeError(ValueError):
    """
    Raised when the shape of data is inconsistent with the declared layout,
    or when two data sets which should be matched have different shapes
    """
    def __init__(self, msg, expected=None, actual=None):
        self.expected = expected
        self.actual = actual
        if expected is not None:
            ValueError.__init__(self, "%s (expected %s, got %s)" % (msg, expected, actual))
        else:
            ValueError.__init__(self, msg)

class ConfigError(ValueError):
    """
    Raised for invalid parameter values, e.g. a non-positive kernel size
    """
    def __init__(self, msg, param=None):
        self.param = param
        if param is not None:
            ValueError.__init__(self, "%s: %s" % (param, msg))
        else:
            ValueError.__init__(self, msg)

class NumericalError(ValueError):
    """
    Raised when a numerical problem cannot be solved at all, e.g. deconvolution
    with an AIF whose convolution matrix has no usable singular values
    """
