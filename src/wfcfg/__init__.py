#
#    Copyright (c) 2024 The wunderfill developers
#
#    See the file LICENSE.txt for your rights.
#
"""Utilities for finding and reading the wunderfill configuration file"""

import os.path

import configobj

default_config_root = os.path.expanduser('~/wunderfill')
default_config_path = os.path.join(default_config_root, 'wunderfill.conf')

DEFAULT_LOCATIONS = [default_config_root, '/etc/wunderfill']

# Values in the example configuration that the user has not filled in
PLACEHOLDERS = ('', 'replace_me')


def find_file(file_path=None, locations=DEFAULT_LOCATIONS, file_name='wunderfill.conf'):
    """Find the configuration file.

    An explicit file_path wins. Otherwise, each directory in locations is
    searched for file_name.

    Returns:
        str|None: The path, or None if nothing was given and the search came up
            empty.

    Raises:
        IOError: If the given path is not a file.
    """
    if file_path is not None:
        if not os.path.isfile(file_path):
            raise IOError("%s is not a file" % file_path)
        return file_path

    for directory in locations:
        candidate = os.path.abspath(os.path.join(directory, file_name))
        if os.path.isfile(candidate):
            return candidate
    return None


def read_config(config_path, locations=DEFAULT_LOCATIONS,
                file_name='wunderfill.conf', interpolation='ConfigParser'):
    """Read the configuration file.

    The file is optional. If none is given and none can be found, an empty
    ConfigObj is returned, and everything must come from the command line.

    Args:
        config_path (str|None): Path to the file, if known.
        locations (list[str]): Directories to search if config_path is None.
        file_name (str): The name to search for.
        interpolation (str): Interpolation used by ConfigObj.

    Returns:
        (str|None, configobj.ConfigObj): The path used, and the contents.

    Raises:
        IOError: If a given file does not exist.
        configobj.ConfigObjError: If the file cannot be parsed.
    """
    config_path = find_file(config_path, locations=locations, file_name=file_name)
    if config_path is None:
        return None, configobj.ConfigObj(interpolation=interpolation, encoding='utf-8')

    try:
        config_dict = configobj.ConfigObj(config_path,
                                          interpolation=interpolation,
                                          file_error=True,
                                          encoding='utf-8',
                                          default_encoding='utf-8')
    except configobj.ConfigObjError as e:
        # Say which file
        e.msg += " File '%s'." % config_path
        raise

    return config_path, config_dict


def get_section(config_dict, section_name):
    """Return the options of a section as a plain dict.

    Subsections, empty values and placeholders are left out. A missing section
    gives an empty dict.
    """
    section = config_dict.get(section_name) or {}
    return {k: v for k, v in section.items()
            if not isinstance(v, dict) and v not in PLACEHOLDERS}
