#
#    Copyright (c) 2024 The wunderfill developers
#
#    See the file LICENSE.txt for your full rights.
#
"""Retrieve archive records from the HTTP server of a station logger.

The logger answers

    GET http://ADDRESS/archive?begin=RFC3339&end=RFC3339

with a JSON array of archive objects, newest first. Each object covers one
logging interval, ending at its timestamp. Values are in US customary units.
The objects are converted into records: dictionaries keyed by observation type.
"""

import http.client
import json
import logging
import urllib.parse
import urllib.request

import wunderfill
from wfutil.wfutil import rfc3339_to_timestamp, timestamp_to_rfc3339, to_float, to_int

log = logging.getLogger(__name__)

# Map from the logger's JSON key to the observation type used in a record, and the
# function used to convert it.
_SCALARS = (
    ('barometer', 'barometer', to_float),
    ('outsideTemperature', 'outTemp', to_float),
    ('outsideHumidity', 'outHumidity', to_int),
    ('rainAccumulation', 'rain', to_float),
    ('rainRateHigh', 'rainRate', to_float),
    ('solarRadiation', 'radiation', to_float),
    ('UVIndexAverage', 'UV', to_float),
    ('windDirectionPrevailing', 'windDir', to_int),
    ('windSpeedAverage', 'windSpeed', to_float),
    ('windSpeedHigh', 'windGust', to_float),
    ('windDirectionHigh', 'windGustDir', to_int),
)

# Sensor arrays. A missing sensor appears as a null in its slot.
_ARRAYS = (
    ('soilMoisture', 'soilMoist'),
    ('soilTemperature', 'soilTemp'),
)

# The interval to assume if it cannot be calculated from the records, in seconds
DEFAULT_INTERVAL = 300


def get_archive(address, start_ts, stop_ts, timeout=10):
    """Get all archive records in the time range [start_ts, stop_ts) from a logger.

    Args:
        address (str): Network address of the logger, as host[:port].
        start_ts (int): Start of the range, in unix epoch time.
        stop_ts (int): End of the range, in unix epoch time.
        timeout (int): Socket timeout in seconds.

    Returns:
        list[dict]: The archive records, ordered newest first, as delivered.

    Raises:
        IOError: If the logger cannot be reached, answers with anything but a 200,
            or the answer is cut short.
        wunderfill.MalformedResponse: If the response cannot be decoded.
    """
    query = urllib.parse.urlencode({'begin': timestamp_to_rfc3339(start_ts),
                                    'end': timestamp_to_rfc3339(stop_ts)})
    url = "http://%s/archive?%s" % (address, query)
    log.debug("Requesting archive: %s", url)

    request = urllib.request.Request(url)
    request.add_header("User-Agent", "wunderfill/%s" % wunderfill.__version__)

    try:
        response = urllib.request.urlopen(request, timeout=timeout)
    except http.client.HTTPException as e:
        raise IOError("Bad response from station logger: %s" % e)
    try:
        if response.code != 200:
            raise IOError("HTTP request returned non-200 status code %d" % response.code)
        body = response.read()
    except http.client.HTTPException as e:
        raise IOError("Incomplete response from station logger: %s" % e)
    finally:
        response.close()

    return decode_archive(body)


def decode_archive(body):
    """Decode the body of an archive response into a list of records."""
    try:
        data = json.loads(body)
    except ValueError as e:
        raise wunderfill.MalformedResponse("Unable to decode archive: %s" % e)
    if data is None:
        # The logger returns 'null' for an empty range.
        return []
    if not isinstance(data, list):
        raise wunderfill.MalformedResponse("Expected a list of archive records, got %s"
                                           % type(data).__name__)
    return [to_record(obj) for obj in data]


def to_record(obj):
    """Convert a single JSON archive object into a record.

    Keys missing from the object result in a value of None, except the timestamp,
    which is required.
    """
    try:
        record = {'dateTime': rfc3339_to_timestamp(obj['timestamp'])}
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise wunderfill.MalformedResponse("Archive record without a valid timestamp: %s" % e)

    try:
        for json_key, obs_type, conversion in _SCALARS:
            record[obs_type] = conversion(obj.get(json_key))
        for json_key, obs_type in _ARRAYS:
            record[obs_type] = [to_float(v) for v in obj.get(json_key) or []]
    except (TypeError, ValueError) as e:
        raise wunderfill.MalformedResponse("Bad value in archive record %s: %s"
                                           % (obj['timestamp'], e))
    return record


def archive_interval(records):
    """Estimate the logging interval of a sequence of records, ordered newest first.

    The two most recent records are used, so that any earlier change in the
    interval does not matter.

    Returns:
        int: The interval in seconds. If there are fewer than two records, the
            default of 5 minutes.
    """
    if len(records) > 1:
        return records[0]['dateTime'] - records[1]['dateTime']
    return DEFAULT_INTERVAL
