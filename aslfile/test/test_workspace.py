"""
Tests for workspace module
"""
import os
import io
import shutil
import tempfile

import numpy as np
import pytest
import yaml

from fsl.data.image import Image

from aslfile import Workspace
from aslfile.workspace import text_to_matrix, matrix_to_text

def test_default_attr():
    """ Check attributes are None by default """
    wsp = Workspace()
    assert(wsp.wibble is None)

def test_set_attr():
    """ Check attributes can bet set """
    wsp = Workspace()
    assert(wsp.wibble is None)
    wsp.wibble = 7
    assert(wsp.wibble == 7)

def test_ctor_attributes():
    """ Check attributes specified in constructor """
    wsp = Workspace(wobble="hi")
    assert(wsp.wobble == "hi")

def test_log():
    """ Check that the log is picked up """
    log = io.StringIO()
    wsp = Workspace(log=log)
    wsp.log.write("hello")
    assert(log.getvalue() == "hello")

def test_ifnone():
    wsp = Workspace(wibble=11)
    assert(wsp.ifnone("wibble", 12) == 11)
    assert(wsp.ifnone("wobble", 12) == 12)

def test_sub():
    """ Test sub-workspaces """
    wsp = Workspace()
    wsp.sub("child")
    assert(isinstance(wsp.child, Workspace))
    assert(wsp.child.wibble is None)
    assert(wsp.child.log == wsp.log)

def test_sub_kwargs():
    """ Test creating a sub workspace with kwargs """
    wsp = Workspace()
    wsp.sub("child", wibble="squid", pudding=4)
    assert(isinstance(wsp.child, Workspace))
    assert(wsp.child.wibble == "squid")
    assert(wsp.child.pudding == 4)

def test_sub_replaces_existing():
    """ Test that re-creating a sub-workspace removes previous output """
    tempdir = tempfile.mkdtemp("_aslfile")
    try:
        wsp = Workspace(savedir=tempdir, log=io.StringIO())
        wsp.sub("child")
        wsp.child.testmat = np.ones((2, 2))
        wsp.sub("child")
        assert(not os.path.exists(os.path.join(tempdir, "child", "testmat.mat")))
    finally:
        shutil.rmtree(tempdir)

def test_savedir_created():
    """ Test save dirs are created if they don't already exist """
    tempdir = tempfile.mktemp("_aslfile")
    try:
        log = io.StringIO()
        wsp = Workspace(savedir=tempdir, log=log)
        assert(wsp.savedir) == tempdir
        assert(os.path.isdir(tempdir))
        assert("WARNING" not in log.getvalue())
    finally:
        shutil.rmtree(tempdir)

def test_savedir_created_multilevel():
    """ Test multi-level save dirs are created if they don't already exist """
    tempdir = os.path.join(tempfile.mktemp("_aslfile"), "extra", "levels")
    try:
        log = io.StringIO()
        wsp = Workspace(savedir=tempdir, log=log)
        assert(wsp.savedir) == tempdir
        assert(os.path.isdir(tempdir))
        assert("WARNING" not in log.getvalue())
    finally:
        shutil.rmtree(tempdir)

def test_savedir_sub():
    """ Test sub-workspace have subdirs created """
    tempdir = tempfile.mktemp("_aslfile")
    try:
        log = io.StringIO()
        wsp = Workspace(savedir=tempdir, log=log)
        wsp.sub("quark")
        path = os.path.join(tempdir, "quark")
        assert(wsp.quark.savedir == path)
        assert(os.path.isdir(path))
        assert("WARNING" not in log.getvalue())
    finally:
        shutil.rmtree(tempdir)

def test_savedir_already_exists():
    """
    Test warning when save dir already exists
    """
    tempdir = tempfile.mkdtemp("_aslfile")
    try:
        log = io.StringIO()
        Workspace(savedir=tempdir, log=log)
        assert("WARNING" in log.getvalue())
        assert("already exists" in log.getvalue())
    finally:
        shutil.rmtree(tempdir)

def test_image_save():
    """
    Test images are saved in the savedir
    """
    tempdir = tempfile.mkdtemp("_aslfile")
    try:
        wsp = Workspace(savedir=tempdir, log=io.StringIO())
        img = Image(np.random.rand(5, 5, 5))
        wsp.testimg = img
        path = os.path.join(tempdir, "testimg.nii.gz")
        assert(os.path.isfile(path))
        otherimg = Image(path)
        assert(np.all(img.data == wsp.testimg.data))
        assert(np.allclose(img.data, otherimg.data))
    finally:
        shutil.rmtree(tempdir)

def test_image_nosave():
    """
    Test setting an image without saving
    """
    tempdir = tempfile.mkdtemp("_aslfile")
    try:
        wsp = Workspace(savedir=tempdir, log=io.StringIO())
        img = Image(np.random.rand(5, 5, 5))
        wsp.set_item("testimg", img, save=False)
        path = os.path.join(tempdir, "testimg.nii.gz")
        assert(not os.path.exists(path))
        assert(np.all(img.data == wsp.testimg.data))
    finally:
        shutil.rmtree(tempdir)

def test_matrix_save():
    """
    Test 2D matrices are saved in the savedir
    """
    tempdir = tempfile.mkdtemp("_aslfile")
    try:
        wsp = Workspace(savedir=tempdir, log=io.StringIO())
        mat = np.random.rand(4, 4)
        wsp.testmat = mat
        path = os.path.join(tempdir, "testmat.mat")
        assert(os.path.isfile(path))
        with open(path) as matfile:
            othermat = text_to_matrix(matfile.read())
        assert(np.all(mat == wsp.testmat))
        assert(np.all(mat == othermat))
    finally:
        shutil.rmtree(tempdir)

def test_matrix_nosave():
    """
    Test setting an matrix without saving
    """
    tempdir = tempfile.mkdtemp("_aslfile")
    try:
        wsp = Workspace(savedir=tempdir, log=io.StringIO())
        mat = np.random.rand(4, 4)
        wsp.set_item("testmat", mat, save=False)
        path = os.path.join(tempdir, "testmat.mat")
        assert(not os.path.exists(path))
        assert(np.all(mat == wsp.testmat))
    finally:
        shutil.rmtree(tempdir)

def test_replace_saved_type():
    """
    Test that replacing an item with a different type removes the old file
    """
    tempdir = tempfile.mkdtemp("_aslfile")
    try:
        wsp = Workspace(savedir=tempdir, log=io.StringIO())
        wsp.testitem = np.random.rand(4, 4)
        assert(os.path.isfile(os.path.join(tempdir, "testitem.mat")))
        wsp.testitem = Image(np.random.rand(5, 5, 5))
        assert(not os.path.exists(os.path.join(tempdir, "testitem.mat")))
        assert(os.path.isfile(os.path.join(tempdir, "testitem.nii.gz")))
    finally:
        shutil.rmtree(tempdir)

def test_values_save():
    """
    Test simple values are saved in the YAML file
    """
    tempdir = tempfile.mkdtemp("_aslfile")
    try:
        wsp = Workspace(savedir=tempdir, log=io.StringIO())
        wsp.nepochs = 4
        wsp.method = "svd"
        wsp._private = 7
        with open(os.path.join(tempdir, "_aslfile.yml")) as yfile:
            stuff = yaml.safe_load(yfile)
        assert(stuff == {"nepochs" : 4, "method" : "svd"})
    finally:
        shutil.rmtree(tempdir)

def test_text_to_matrix_spaces():
    """
    Check that text_to_matrix works with space separated data
    """
    text = "1 2 3\n4 5 6\n"
    mat = text_to_matrix(text)
    assert(np.all(mat == [[1, 2, 3], [4, 5, 6]]))

def test_text_to_matrix_comma():
    """
    Check that text_to_matrix works with comma separated data
    """
    text = "1, 2, 3\n4,5,6\n"
    mat = text_to_matrix(text)
    assert(np.all(mat == [[1, 2, 3], [4, 5, 6]]))

def test_text_to_matrix_comments():
    text = "# AIF\n1 2 3 # first row\n\n4 5 6\n"
    mat = text_to_matrix(text)
    assert(np.all(mat == [[1, 2, 3], [4, 5, 6]]))

def test_text_to_matrix_varying_cols():
    with pytest.raises(ValueError):
        text_to_matrix("1 2 3\n4 5\n")

def test_text_to_matrix_non_numeric():
    with pytest.raises(ValueError):
        text_to_matrix("1 2 3\n4 x 6\n")

def test_matrix_to_text():
    mat = np.array([[1.5, 2], [3, 4]])
    assert(np.all(text_to_matrix(matrix_to_text(mat)) == mat))
