#
#    Copyright (c) 2024 The wunderfill developers
#
#    See the file LICENSE.txt for your full rights.
#
"""Time and type conversion utilities used throughout wunderfill.

   The doctests depend on the time zone. Run them as a module:
     cd ~/git/wunderfill/src
     python -m wfutil.wfutil
"""

import datetime
import os
import time
from collections import namedtuple

one_day = datetime.timedelta(days=1)


# ===============================================================================
# Local calendar days. A day starts at local midnight, so it is not always
# 24 hours long.
# ===============================================================================

class TimeSpan(namedtuple('TimeSpan', ['start', 'stop'])):
    """A span of unix epoch time [start, stop)."""
    __slots__ = ()

    def __new__(cls, start, stop):
        if start > stop:
            raise ValueError("Span start %s is after its stop %s" % (start, stop))
        return super(TimeSpan, cls).__new__(cls, start, stop)

    def __str__(self):
        return "[%s -> %s)" % (timestamp_to_string(self.start),
                               timestamp_to_string(self.stop))


def local_date(time_ts):
    """Return the local calendar date, as a datetime.date, holding the timestamp."""
    return datetime.date.fromtimestamp(time_ts)


def date_to_ts(date_d):
    """Return the unix epoch time of the local midnight that starts date_d.

    >>> os.environ['TZ'] = 'America/Los_Angeles'
    >>> time.tzset()
    >>> print(date_to_ts(datetime.date(2008, 3, 9)))
    1205049600
    """
    return int(time.mktime(date_d.timetuple()))


def genDaySpans(start_ts, stop_ts):
    """Generate the local days that cover the window [start_ts, stop_ts).

    The day holding start_ts always comes first. After that, a day is included
    only if its midnight is earlier than stop_ts, so a window that ends exactly
    at midnight does not reach into the next day.

    Yields:
        TimeSpan: From the midnight starting a day to the one starting the next.

    >>> os.environ['TZ'] = 'America/Los_Angeles'
    >>> time.tzset()
    >>> for span in genDaySpans(1204796460, 1205049600):
    ...     print(span)
    [2008-03-06 00:00:00 PST (1204790400) -> 2008-03-07 00:00:00 PST (1204876800))
    [2008-03-07 00:00:00 PST (1204876800) -> 2008-03-08 00:00:00 PST (1204963200))
    [2008-03-08 00:00:00 PST (1204963200) -> 2008-03-09 00:00:00 PST (1205049600))
    """
    day = local_date(start_ts)
    while True:
        span = TimeSpan(date_to_ts(day), date_to_ts(day + one_day))
        yield span
        if span.stop >= stop_ts:
            break
        day += one_day


def timestamp_to_string(ts, format_str="%Y-%m-%d %H:%M:%S %Z"):
    """Format a timestamp in local time, followed by its raw value.

    >>> os.environ['TZ'] = 'America/Los_Angeles'
    >>> time.tzset()
    >>> print(timestamp_to_string(1196705700))
    2007-12-03 10:15:00 PST (1196705700)
    >>> print(timestamp_to_string(None))
    ******* N/A *******     (    N/A   )
    """
    if ts is None:
        return "******* N/A *******     (    N/A   )"
    return "%s (%d)" % (time.strftime(format_str, time.localtime(ts)), ts)


def timestamp_to_rfc3339(ts):
    """Return the timestamp as an RFC 3339 string in UTC.

    >>> print(timestamp_to_rfc3339(1196705700))
    2007-12-03T18:15:00Z
    """
    return datetime.datetime.fromtimestamp(ts, datetime.timezone.utc).strftime('%Y-%m-%dT%H:%M:%SZ')


def rfc3339_to_timestamp(time_str):
    """Parse an RFC 3339 string into unix epoch time.

    >>> print(rfc3339_to_timestamp('2007-12-03T10:15:00-08:00'))
    1196705700
    >>> print(rfc3339_to_timestamp('2007-12-03T18:15:00Z'))
    1196705700
    """
    if time_str.endswith(('Z', 'z')):
        time_str = time_str[:-1] + '+00:00'
    time_dt = datetime.datetime.fromisoformat(time_str)
    if time_dt.tzinfo is None:
        # No offset. Assume local time.
        return int(time.mktime(time_dt.timetuple()))
    return int(time_dt.timestamp())


# ===============================================================================
# Conversions of configuration values. These arrive as strings.
# ===============================================================================

def to_bool(x):
    """Interpret x as a boolean.

    >>> print(to_bool('Yes'), to_bool('n'), to_bool(1), to_bool('0'))
    True False True False
    >>> to_bool('sometimes')
    Traceback (most recent call last):
    ValueError: Not a boolean: 'sometimes'
    """
    if isinstance(x, str):
        if x.lower() in ('true', 'yes', 'y'):
            return True
        if x.lower() in ('false', 'no', 'n'):
            return False
    try:
        return bool(int(x))
    except (ValueError, TypeError):
        raise ValueError("Not a boolean: '%s'" % x)


def to_int(x):
    """Convert to int. None, and the string 'None', stay None.

    >>> print(to_int('12'), to_int('12.7'), to_int(-5.2), to_int('None'))
    12 12 -5 None
    """
    if x is None or (isinstance(x, str) and x.lower() == 'none'):
        return None
    try:
        return int(x)
    except ValueError:
        # A string holding a decimal point
        return int(float(x))


def to_float(x):
    """Convert to float. None, and the string 'None', stay None.

    >>> print(to_float('12.5'), to_float(3), to_float(None))
    12.5 3.0 None
    """
    if x is None or (isinstance(x, str) and x.lower() == 'none'):
        return None
    return float(x)


def to_sorted_string(rec):
    """Format a dictionary with its keys in case-insensitive order.

    >>> print(to_sorted_string({'windSpeed': 3, 'UV': 1.0, 'barometer': 30.1}))
    barometer: 30.1, UV: 1.0, windSpeed: 3
    """
    return ", ".join("%s: %s" % (k, rec[k]) for k in sorted(rec, key=str.lower))


class bcolors:
    """Colors used for terminals"""
    WARNING = '\033[93m'
    ENDC = '\033[0m'
    BOLD = '\033[1m'


if __name__ == '__main__':
    import doctest

    if not doctest.testmod().failed:
        print("PASSED")
