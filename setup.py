#!/usr/bin/env python
import os
import subprocess
import re

from setuptools import setup
from setuptools import find_packages

kwargs = {
    'name' : 'aslfile',
    'description' : 'Python library for reordering, averaging and correcting multi-TI ASL data',
    'author' : 'Martin Craig',
    'author_email' : 'martin.craig@eng.ox.ac.uk',
    'license' : '',
}

# Used when building outside a Git checkout, e.g. from an sdist
DEFAULT_VERSION = "0.1.0"

def git_version():
    # Full version includes the Git commit hash
    try:
        full_version = subprocess.check_output('git describe --dirty', shell=True, stderr=subprocess.DEVNULL).decode("utf-8").strip(" \n")
    except subprocess.CalledProcessError:
        return None, DEFAULT_VERSION

    # Python standardized version in form major.minor.patch.dev<build>
    version_regex = re.compile(r"v?(\d+\.\d+\.\d+(-\d+)?).*")
    match = version_regex.match(full_version)
    if match:
        std_version = match.group(1).replace("-", ".dev")
    else:
        raise RuntimeError("Failed to parse version string %s" % full_version)

    return full_version, std_version

def git_timestamp():
    try:
        return subprocess.check_output('git log -1 --format=%cd', shell=True, stderr=subprocess.DEVNULL).decode("utf-8").strip(" \n")
    except subprocess.CalledProcessError:
        return "unknown"

def set_metadata(module_dir, version_str, timestamp_str):
    with open(os.path.join(module_dir, "aslfile", "_version.py"), "w") as vfile:
        vfile.write("__version__ = '%s'\n" % version_str)
        vfile.write("__timestamp__ = '%s'\n" % timestamp_str)

# Read in requirements from the requirements.txt file.
rootdir = os.path.abspath(os.path.dirname(__file__))
with open(os.path.join(rootdir, 'requirements.txt'), 'rt') as f:
    requirements = [l.strip() for l in f.readlines() if l.strip()]

_, stdv = git_version()
timestamp = git_timestamp()
set_metadata(rootdir, stdv, timestamp)

setup(
    packages=find_packages(exclude=["*.test", "*.test.*"]),
    version=stdv,
    install_requires=requirements,
    extras_require={
        'test' : ['pytest'],
    },
    entry_points={
        'console_scripts' : [
            "asl_file=aslfile.asl_file:main",
        ],
    },
    classifiers=[
        'Development Status :: 3 - Alpha',
        'Intended Audience :: Developers',
        'Programming Language :: Python :: 3',
        'Topic :: Scientific/Engineering :: Medical Science Apps.',
    ],
    **kwargs
)
