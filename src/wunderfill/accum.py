#
#    Copyright (c) 2024 The wunderfill developers
#
#    See the file LICENSE.txt for your full rights.
#
"""Daily rain accumulator.

Each archive record holds only the rain that fell during its own interval. The
Weather Underground wants the rain since local midnight. By replaying the
records in time order, the daily total can be reconstructed. The state is an
immutable value: adding a record returns a new state.
"""

from collections import namedtuple

from wfutil.wfutil import local_date


class DailyRain(namedtuple('DailyRain', ['day', 'rain'])):
    """Running total of rain for a local calendar day.

    day: The local date (datetime.date) of the last record added, or None if
    nothing has been added yet.

    rain: Rain accumulated on that day, including the last record added.
    """
    __slots__ = ()

    def add(self, record):
        """Return the state after adding a record.

        If the record falls on a different day, the total starts over with the
        record's own rain. A missing rain value counts as no rain.
        """
        _day = local_date(record['dateTime'])
        _rain = record.get('rain') or 0.0
        if _day != self.day:
            return DailyRain(_day, _rain)
        return DailyRain(_day, self.rain + _rain)


# The state before any record has been seen
EMPTY = DailyRain(None, 0.0)


def replay(records, state=EMPTY):
    """Walk records delivered newest first in time order, oldest first.

    Yields:
        (dict, DailyRain): Each record, along with the daily state that includes it.
    """
    for record in reversed(records):
        state = state.add(record)
        yield record, state
