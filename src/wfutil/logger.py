#
#    Copyright (c) 2024 The wunderfill developers
#
#    See the file LICENSE.txt for your full rights.
#
"""wunderfill logging facility.

The configuration handed to logging.config.dictConfig() is built from a
configobj template, with the user's [Logging] section merged over it.
"""

import contextlib
import io
import logging.config

import configobj

import wunderfill

# Default logging configuration. Braced names, such as {log_level}, are filled in by
# setup(). Percent style names, such as %(message)s, belong to the logging module.
LOGGING_STR = """[Logging]
    version = 1
    disable_existing_loggers = False

    [[root]]
      level = {log_level}
      handlers = console,

    # Per module settings, keyed by logger name. For example, [[[wunderfill.restx]]]
    [[loggers]]

    [[handlers]]

        # Progress goes to stdout, so the log uses stderr
        [[[console]]]
            level = {console_level}
            formatter = simple
            class = logging.StreamHandler
            stream = ext://sys.stderr

        # Not opened until some logger names it in its handlers
        [[[rotate]]]
            level = DEBUG
            formatter = standard
            class = logging.handlers.RotatingFileHandler
            filename = {log_file}
            maxBytes = 10000000
            backupCount = 4
            delay = True

    [[formatters]]
        [[[simple]]]
            format = "%(levelname)s %(message)s"
        [[[standard]]]
            format = "%(asctime)s {process_name}[%(process)d] %(levelname)s %(name)s: %(message)s"
            datefmt = %Y-%m-%d %H:%M:%S
"""

# Where the rotating file handler writes, if it is used.
log_file = 'wunderfill.log'


def setup(process_name, user_log_dict, verbose=False):
    """Set up the wunderfill logging facility

    Args:
        process_name (str): Name that goes in front of each log entry.
        user_log_dict (dict): A dictionary, possibly holding a [Logging] section with
            user additions or changes. Often the whole configuration dictionary.
        verbose (bool): True to echo informational messages to the console. Otherwise,
            only warnings and above reach it.

    Returns:
        dict: The dictionary given to logging.config.dictConfig().
    """

    # The template holds %(...)s directives, so no interpolation
    log_config = configobj.ConfigObj(io.StringIO(LOGGING_STR), interpolation=False,
                                     encoding='utf-8')

    with _no_interpolation(user_log_dict):
        log_config.merge(user_log_dict)

    log_level = 'DEBUG' if wunderfill.debug else 'INFO'
    log_config['Logging'].walk(_fill_placeholders,
                               log_level=log_level,
                               console_level=log_level if verbose else 'WARNING',
                               log_file=log_file,
                               process_name=process_name)
    log_config['Logging'].walk(_to_native)

    # Anything outside of [Logging] is of no interest to the logging module
    log_dict = log_config.dict().get('Logging', {})
    logging.config.dictConfig(log_dict)

    return log_dict


@contextlib.contextmanager
def _no_interpolation(config_dict):
    """Suspend interpolation of a ConfigObj. A plain dict is left alone."""
    saved = getattr(config_dict, 'interpolation', None)
    if saved is None:
        yield config_dict
        return
    config_dict.interpolation = False
    try:
        yield config_dict
    finally:
        config_dict.interpolation = saved


def _fill_placeholders(section, key, **values):
    value = section[key]
    if isinstance(value, (list, tuple)):
        section[key] = [item.format(**values) for item in value]
    else:
        section[key] = value.format(**values)


def _to_native(section, key):
    """Strings that spell a boolean or a number become one."""
    value = section[key]
    if not isinstance(value, str):
        return
    if value.lower() in ('true', 'false'):
        section[key] = value.lower() == 'true'
        return
    for conversion in (int, float):
        try:
            section[key] = conversion(value)
            return
        except ValueError:
            pass
