#
#    Copyright (c) 2024 The wunderfill developers
#
#    See the file LICENSE.txt for your full rights.
#
"""Fill in missing data on the Weather Underground.

Goes through all the records in the archive of a station logger for a time
window, comparing to see whether a corresponding observation exists on the
Weather Underground. If not, a new observation is published with the missing
data.

The archive is delivered newest first. It is walked oldest first, so that the
rain of each interval can be summed into a daily total, which the WU wants but
the archive does not hold.
"""

import http.client
import logging

import wunderfill
import wunderfill.accum
import wunderfill.archive
import wunderfill.gaps
import wunderfill.restx
import wunderfill.wxformulas
from wfutil.wfutil import genDaySpans, timestamp_to_string, to_sorted_string

log = logging.getLogger(__name__)

# Possible outcomes for a record
ALREADY_PRESENT = 'already present'
UPLOADED_OK = 'uploaded'
UPLOAD_FAILED = 'failed'
SKIPPED_TEST_MODE = 'not uploaded (test)'

# Observation types copied straight from an archive record into a payload
_COPIED_TYPES = ('barometer', 'outTemp', 'outHumidity', 'rainRate', 'radiation', 'UV',
                 'windDir', 'windSpeed')


class RunResult(object):
    """The outcome of processing one archive record."""

    def __init__(self, timestamp, status, reason=None, payload=None):
        self.timestamp = timestamp
        self.status = status
        self.reason = reason
        self.payload = payload

    def __str__(self):
        if self.reason:
            return "%s: %s (%s)" % (timestamp_to_string(self.timestamp), self.status, self.reason)
        return "%s: %s" % (timestamp_to_string(self.timestamp), self.status)

    def __repr__(self):
        return "RunResult(%r, %r, %r)" % (self.timestamp, self.status, self.reason)


class RunReport(object):
    """Summary of a whole run."""

    def __init__(self, start_ts, stop_ts, archive_count, remote_count, interval, results):
        self.start_ts = start_ts
        self.stop_ts = stop_ts
        self.archive_count = archive_count
        self.remote_count = remote_count
        self.interval = interval
        self.results = results

    def count(self, status):
        return sum(1 for result in self.results if result.status == status)

    @property
    def missing(self):
        return len(self.results) - self.count(ALREADY_PRESENT)

    @property
    def uploaded(self):
        return self.count(UPLOADED_OK)

    @property
    def failed(self):
        return self.count(UPLOAD_FAILED)

    @property
    def skipped(self):
        return self.count(SKIPPED_TEST_MODE)

    def summary(self):
        return "%d of %d missing records uploaded, %d failed." \
               % (self.uploaded, self.missing, self.failed)

    def lines(self):
        """Generate the lines of a human readable report."""
        yield "Fill range is %s to %s." % (timestamp_to_string(self.start_ts),
                                            timestamp_to_string(self.stop_ts))
        yield "Found %d archive records." % self.archive_count
        yield "Found %d Weather Underground observations." % self.remote_count
        yield "Archive interval is %d seconds." % self.interval
        for result in self.results:
            if result.status != ALREADY_PRESENT:
                yield "\tMissing %s" % result
        if self.skipped:
            yield "%d missing records not uploaded (test mode)." % self.skipped
        yield self.summary()


def build_payload(record, day_rain, interval):
    """Build the payload to be posted for a single archive record.

    Args:
        record (dict): The archive record.
        day_rain (float): Rain since local midnight, including this record.
        interval (int): The logging interval, in seconds.

    Returns:
        dict: The payload. Types that are not to be reported are absent.
    """
    payload = {'dateTime': record['dateTime'],
               'interval': interval,
               'dayRain': day_rain}

    for obs_type in _COPIED_TYPES:
        if record.get(obs_type) is not None:
            payload[obs_type] = record[obs_type]

    try:
        payload['dewpoint'] = wunderfill.wxformulas.dewpointF(record.get('outTemp'),
                                                              record.get('outHumidity'))
    except wunderfill.ViolatedPrecondition as e:
        log.warning("No dew point for record %s: %s",
                    timestamp_to_string(record['dateTime']), e)

    # Gusts are reported only if they exceed the average wind speed.
    _gust = record.get('windGust')
    _speed = record.get('windSpeed')
    if _gust is not None and _speed is not None and _gust > _speed:
        payload['windGust'] = _gust
        if record.get('windGustDir') is not None:
            payload['windGustDir'] = record['windGustDir']

    # Soil sensors keep their slot number. Empty slots are not reported.
    for obs_type in ('soilMoist', 'soilTemp'):
        for i, value in enumerate(record.get(obs_type) or []):
            if value is not None:
                payload['%s%d' % (obs_type, i + 1)] = value

    return payload


class Filler(object):
    """Fills the gaps of a Weather Underground station from a station logger."""

    def __init__(self, address, uploader, test=False, timeout=10):
        """Initializer for the Filler class.

        address: Network address of the station logger, host[:port].

        uploader: An object with methods get_timestamps(day_spans) and
        upload(payload). Usually, an instance of wunderfill.restx.WunderStation.

        test: True to do everything but the uploads.

        timeout: Socket timeout used with the station logger.
        """
        if not address:
            raise wunderfill.ViolatedPrecondition("The address of the station logger is needed")
        self.address = address
        self.uploader = uploader
        self.test = test
        self.timeout = timeout

    def run(self, start_ts, stop_ts):
        """Fill the window [start_ts, stop_ts).

        Returns:
            RunReport: One RunResult for every archive record in the window.

        Raises:
            IOError, wunderfill.MalformedResponse, wunderfill.restx.BadLogin: If either
                the archive or the Weather Underground observations cannot be retrieved.
                Nothing will have been uploaded.
        """
        if start_ts >= stop_ts:
            raise wunderfill.ViolatedPrecondition("Start of window %s is not before its end %s"
                                                  % (timestamp_to_string(start_ts),
                                                     timestamp_to_string(stop_ts)))
        log.info("Fill range is %s to %s", timestamp_to_string(start_ts),
                 timestamp_to_string(stop_ts))

        # Get records from archive.
        records = wunderfill.archive.get_archive(self.address, start_ts, stop_ts, self.timeout)
        interval = wunderfill.archive.archive_interval(records)
        log.info("Found %d archive records. Interval is %d seconds", len(records), interval)

        # Get the time stamps already on the Weather Underground, one day at a time.
        remote_times = self.uploader.get_timestamps(genDaySpans(start_ts, stop_ts))
        log.info("Found %d Weather Underground observations", len(remote_times))

        # Unfortunately, the WU does not signal an error if you ask for a non-existent
        # station. So, there's no way to tell the difference between asking for results from
        # a non-existent station, versus a legitimate station that has no data. Warn, then
        # proceed.
        if records and not remote_times:
            log.warning("No results returned from Weather Underground "
                        "(perhaps a bad station name?). Publishing anyway.")

        present = wunderfill.gaps.find_missing(records, remote_times)
        log.info("%d Weather Underground records missing",
                 sum(1 for flag in present if not flag))

        results = []
        # The replay is oldest first, the flags are in delivery order, newest first.
        for (record, daily), found in zip(wunderfill.accum.replay(records), reversed(present)):
            if found:
                results.append(RunResult(record['dateTime'], ALREADY_PRESENT))
                continue
            payload = build_payload(record, daily.rain, interval)
            results.append(self.process(payload))

        report = RunReport(start_ts, stop_ts, len(records), len(remote_times), interval, results)
        log.info("%s Filler exiting.", report.summary())
        return report

    def process(self, payload):
        """Post a single payload, catching any failure.

        Returns:
            RunResult: The outcome.
        """
        _time_str = timestamp_to_string(payload['dateTime'])
        if wunderfill.debug:
            log.debug("Payload for %s: %s", _time_str, to_sorted_string(payload))

        if self.test:
            log.info("Missing %s: not uploaded (test)", _time_str)
            return RunResult(payload['dateTime'], SKIPPED_TEST_MODE, payload=payload)

        try:
            self.uploader.upload(payload)
        except wunderfill.restx.BadLogin as e:
            log.error("Missing %s: bad login: %s", _time_str, e)
            return RunResult(payload['dateTime'], UPLOAD_FAILED, str(e), payload)
        except (IOError, http.client.HTTPException) as e:
            # This includes FailedPost
            log.error("Missing %s: not published. Reason '%s'", _time_str, e)
            return RunResult(payload['dateTime'], UPLOAD_FAILED, str(e), payload)

        log.info("Missing %s: successfully uploaded", _time_str)
        return RunResult(payload['dateTime'], UPLOADED_OK, payload=payload)
