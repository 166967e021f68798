#!/usr/bin/env python
#
#    wunderfill --- Fill gaps in a Weather Underground station's record
#
#    Copyright (c) 2024 The wunderfill developers
#
#    See the file LICENSE.txt for your full rights.
#
"""Setup file for wunderfill."""

import os.path
import re
import sys

from setuptools import setup

if sys.version_info < (3, 7):
    sys.exit("wunderfill requires Python V3.7 or greater.")

this_dir = os.path.abspath(os.path.dirname(__file__))


def get_version():
    """Read the version out of the package, without importing it."""
    with open(os.path.join(this_dir, 'src', 'wunderfill', '__init__.py')) as fd:
        for line in fd:
            match = re.match(r'__version__\s*=\s*"(.*)"', line)
            if match:
                return match.group(1)
    raise RuntimeError("Unable to find the version of wunderfill")


if __name__ == "__main__":
    setup(name='wunderfill',
          version=get_version(),
          description='Fill gaps in a Weather Underground station from a station logger',
          long_description="wunderfill compares the archive of a weather station logger with "
                           "the observations held by the Weather Underground, then publishes "
                           "any archive record that is missing.",
          author='The wunderfill developers',
          license='GPLv3',
          python_requires='>=3.7',
          package_dir={'': 'src'},
          py_modules=['wfill'],
          packages=['wfcfg',
                    'wfutil',
                    'wunderfill'],
          install_requires=['configobj>=5.0'],
          extras_require={'test': ['pytest']},
          entry_points={'console_scripts': ['wfill = wfill:main']},
          data_files=[('wunderfill', ['src/wunderfill_data/wunderfill.conf'])],
          )
