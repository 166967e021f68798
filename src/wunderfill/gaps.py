#
#    Copyright (c) 2024 The wunderfill developers
#
#    See the file LICENSE.txt for your full rights.
#
"""Find the archive records that are missing on the remote side.

Clocks of the station logger and of the remote service do not agree exactly,
and the remote service stamps an observation with its own time of receipt.
So, two timestamps are considered the same if they are within FUZZ_SECONDS
of each other. The comparison is exclusive at both ends.
"""

# The number of seconds difference in the timestamp between two records
# and still have them considered to be the same:
FUZZ_SECONDS = 150


def is_present(time_ts, remote_times, tolerance=FUZZ_SECONDS):
    """Return True if any of remote_times falls strictly within tolerance of time_ts."""
    for remote_ts in remote_times:
        if time_ts - tolerance < remote_ts < time_ts + tolerance:
            return True
    return False


def find_missing(records, remote_times, tolerance=FUZZ_SECONDS):
    """For each record, determine whether the remote side already has it.

    Args:
        records (list[dict]): Archive records, in any order.
        remote_times (iterable[int]): Timestamps of the observations the remote side holds.
        tolerance (float): How close, in seconds, two timestamps must be to match.

    Returns:
        list[bool]: One flag per record, in the same order. True means the record
            has a remote match, False that it is missing.
    """
    # It will be traversed many times.
    remote_times = list(remote_times)
    return [is_present(record['dateTime'], remote_times, tolerance) for record in records]
