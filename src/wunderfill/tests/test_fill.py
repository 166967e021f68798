#
#    Copyright (c) 2024 The wunderfill developers
#
#    See the file LICENSE.txt for your full rights.
#
"""Test filling the gaps of a Weather Underground station"""

import http.client
import os
import time
import unittest
from unittest import mock

import wunderfill
import wunderfill.fill
import wunderfill.restx
from wunderfill.fill import (ALREADY_PRESENT, SKIPPED_TEST_MODE, UPLOADED_OK, UPLOAD_FAILED,
                             Filler, build_payload)

os.environ['TZ'] = 'America/Los_Angeles'
time.tzset()

START_TS = int(time.mktime((2018, 3, 22, 0, 0, 0, 0, 0, -1)))
STOP_TS = int(time.mktime((2018, 3, 24, 0, 0, 0, 0, 0, -1)))


def make_record(ts, **kwargs):
    record = {'dateTime': ts, 'barometer': 30.1, 'outTemp': 52.0, 'outHumidity': 80,
              'rain': 0.1, 'rainRate': 0.0, 'radiation': None, 'UV': None, 'windDir': 180,
              'windSpeed': 4.0, 'windGust': 4.0, 'windGustDir': 200,
              'soilMoist': [], 'soilTemp': []}
    record.update(kwargs)
    return record


def get_records():
    """Three records across midnight, newest first, as the logger delivers them."""
    t0 = int(time.mktime((2018, 3, 22, 23, 50, 0, 0, 0, -1)))
    return [make_record(t0 + 900), make_record(t0 + 300), make_record(t0)]


class FakeUploader(object):
    """Stands in for a WunderStation"""

    def __init__(self, remote_times=(), failures=None):
        self.remote_times = list(remote_times)
        self.failures = failures or {}
        self.uploaded = []
        self.day_spans = None

    def get_timestamps(self, day_spans):
        self.day_spans = list(day_spans)
        return list(self.remote_times)

    def upload(self, payload):
        if payload['dateTime'] in self.failures:
            raise self.failures[payload['dateTime']]
        self.uploaded.append(payload)
        # The WU now holds it
        self.remote_times.append(payload['dateTime'])


class BuildPayloadTest(unittest.TestCase):

    def test_basic(self):
        record = make_record(START_TS, windGust=9.0, radiation=12.0)
        payload = build_payload(record, 0.25, 300)
        self.assertEqual(payload['dateTime'], START_TS)
        self.assertEqual(payload['interval'], 300)
        self.assertEqual(payload['dayRain'], 0.25)
        self.assertEqual(payload['barometer'], 30.1)
        self.assertEqual(payload['outTemp'], 52.0)
        self.assertEqual(payload['outHumidity'], 80)
        self.assertEqual(payload['rainRate'], 0.0)
        self.assertEqual(payload['radiation'], 12.0)
        self.assertAlmostEqual(payload['dewpoint'], 46.0, 0)
        # Missing values are absent, not zero
        self.assertNotIn('UV', payload)
        # The per-interval rain is not posted
        self.assertNotIn('rain', payload)

    def test_gust(self):
        payload = build_payload(make_record(START_TS, windSpeed=4.0, windGust=9.0), 0.0, 300)
        self.assertEqual(payload['windGust'], 9.0)
        self.assertEqual(payload['windGustDir'], 200)

    def test_no_gust(self):
        # Equal to the average speed is not a gust
        payload = build_payload(make_record(START_TS, windSpeed=4.0, windGust=4.0), 0.0, 300)
        self.assertNotIn('windGust', payload)
        self.assertNotIn('windGustDir', payload)
        payload = build_payload(make_record(START_TS, windSpeed=4.0, windGust=None), 0.0, 300)
        self.assertNotIn('windGust', payload)

    def test_soil(self):
        record = make_record(START_TS, soilMoist=[23.0, None, None, 40.0],
                             soilTemp=[None, 48.5, None, None])
        payload = build_payload(record, 0.0, 300)
        self.assertEqual(payload['soilMoist1'], 23.0)
        self.assertEqual(payload['soilMoist4'], 40.0)
        self.assertEqual(payload['soilTemp2'], 48.5)
        for key in ('soilMoist2', 'soilMoist3', 'soilTemp1', 'soilTemp3', 'soilTemp4'):
            self.assertNotIn(key, payload)

    def test_no_soil(self):
        payload = build_payload(make_record(START_TS, soilMoist=None, soilTemp=[]), 0.0, 300)
        self.assertFalse([key for key in payload if key.startswith('soil')])

    def test_no_dewpoint(self):
        with mock.patch('wunderfill.fill.log.warning') as mock_logwarn:
            payload = build_payload(make_record(START_TS, outHumidity=0), 0.0, 300)
            mock_logwarn.assert_called_once()
        self.assertNotIn('dewpoint', payload)
        payload = build_payload(make_record(START_TS, outTemp=None), 0.0, 300)
        self.assertNotIn('dewpoint', payload)
        self.assertNotIn('outTemp', payload)


class FillerTest(unittest.TestCase):

    def setUp(self):
        patcher = mock.patch('wunderfill.archive.get_archive')
        self.mock_get_archive = patcher.start()
        self.mock_get_archive.return_value = get_records()
        self.addCleanup(patcher.stop)

    def test_arguments(self):
        with self.assertRaises(wunderfill.ViolatedPrecondition):
            Filler('', FakeUploader())
        filler = Filler('localhost', FakeUploader())
        with self.assertRaises(wunderfill.ViolatedPrecondition):
            filler.run(STOP_TS, START_TS)
        self.mock_get_archive.assert_not_called()

    def test_fill(self):
        uploader = FakeUploader()
        report = Filler('192.168.1.20', uploader, timeout=5).run(START_TS, STOP_TS)
        self.mock_get_archive.assert_called_once_with('192.168.1.20', START_TS, STOP_TS, 5)
        # One span per day
        self.assertEqual(len(uploader.day_spans), 2)

        # Posted oldest first
        self.assertEqual([payload['dateTime'] for payload in uploader.uploaded],
                         [record['dateTime'] for record in reversed(get_records())])
        # The daily rain starts over at midnight
        day_rain = [payload['dayRain'] for payload in uploader.uploaded]
        self.assertAlmostEqual(day_rain[0], 0.1)
        self.assertAlmostEqual(day_rain[1], 0.2)
        self.assertAlmostEqual(day_rain[2], 0.1)
        self.assertEqual(uploader.uploaded[0]['interval'], 600)

        self.assertEqual(report.archive_count, 3)
        self.assertEqual(report.remote_count, 0)
        self.assertEqual(report.interval, 600)
        self.assertEqual([result.status for result in report.results], [UPLOADED_OK] * 3)
        self.assertEqual(report.summary(), "3 of 3 missing records uploaded, 0 failed.")

    def test_rain_follows_skipped_records(self):
        # The middle record is already there, but its rain still counts
        records = get_records()
        uploader = FakeUploader(remote_times=[records[1]['dateTime'] + 30])
        report = Filler('localhost', uploader).run(START_TS, STOP_TS)
        self.assertEqual([result.status for result in report.results],
                         [UPLOADED_OK, ALREADY_PRESENT, UPLOADED_OK])
        self.assertEqual(len(uploader.uploaded), 2)
        self.assertAlmostEqual(uploader.uploaded[0]['dayRain'], 0.1)
        self.assertAlmostEqual(uploader.uploaded[1]['dayRain'], 0.1)
        self.assertEqual(report.summary(), "2 of 2 missing records uploaded, 0 failed.")

    def test_test_mode(self):
        uploader = FakeUploader()
        with mock.patch.object(uploader, 'upload') as mock_upload:
            report = Filler('localhost', uploader, test=True).run(START_TS, STOP_TS)
            self.assertEqual(mock_upload.call_count, 0)
        self.assertEqual([result.status for result in report.results], [SKIPPED_TEST_MODE] * 3)
        self.assertEqual(report.skipped, 3)
        self.assertEqual(report.missing, 3)
        self.assertEqual(report.summary(), "0 of 3 missing records uploaded, 0 failed.")
        # Payloads are still built
        self.assertIn('dewpoint', report.results[0].payload)

    def test_idempotent(self):
        uploader = FakeUploader()
        filler = Filler('localhost', uploader)
        filler.run(START_TS, STOP_TS)
        self.assertEqual(len(uploader.uploaded), 3)
        report = filler.run(START_TS, STOP_TS)
        # Nothing more gets uploaded the second time around
        self.assertEqual(len(uploader.uploaded), 3)
        self.assertEqual(report.missing, 0)
        self.assertEqual(report.summary(), "0 of 0 missing records uploaded, 0 failed.")

    def test_failures_continue(self):
        records = get_records()
        uploader = FakeUploader(failures={
            records[2]['dateTime']: wunderfill.restx.FailedPost("Failed upload after 1 tries"),
            records[1]['dateTime']: wunderfill.restx.BadLogin("ERROR: bad password")})
        report = Filler('localhost', uploader).run(START_TS, STOP_TS)
        self.assertEqual([result.status for result in report.results],
                         [UPLOAD_FAILED, UPLOAD_FAILED, UPLOADED_OK])
        self.assertEqual(report.results[0].reason, "Failed upload after 1 tries")
        self.assertEqual(report.results[1].reason, "ERROR: bad password")
        self.assertEqual(len(uploader.uploaded), 1)
        self.assertEqual(report.summary(), "1 of 3 missing records uploaded, 2 failed.")

    def test_cut_short_response(self):
        """Every post gets a good code, then the body is cut short"""
        station = wunderfill.restx.WunderStation('someapikey', station='KBZABCDEF3',
                                                 password='somepassword')
        with mock.patch.object(station, 'get_timestamps', return_value=[]), \
                mock.patch('wunderfill.restx.urllib.request.urlopen') as mock_urlopen:
            mock_urlopen.return_value.code = 200
            mock_urlopen.return_value.__iter__.side_effect = http.client.IncompleteRead(b'')
            report = Filler('localhost', station).run(START_TS, STOP_TS)
        self.assertEqual(mock_urlopen.call_count, 3)
        self.assertEqual([result.status for result in report.results], [UPLOAD_FAILED] * 3)
        self.assertEqual(report.results[0].reason, "Failed upload after 1 tries")
        self.assertEqual(report.summary(), "0 of 3 missing records uploaded, 3 failed.")

    def test_http_exception_continues(self):
        records = get_records()
        uploader = FakeUploader(failures={
            records[1]['dateTime']: http.client.BadStatusLine('garbage')})
        report = Filler('localhost', uploader).run(START_TS, STOP_TS)
        self.assertEqual([result.status for result in report.results],
                         [UPLOADED_OK, UPLOAD_FAILED, UPLOADED_OK])
        self.assertEqual(len(uploader.uploaded), 2)

    def test_archive_failure(self):
        self.mock_get_archive.side_effect = IOError("Connection refused")
        uploader = FakeUploader()
        with self.assertRaises(IOError):
            Filler('localhost', uploader).run(START_TS, STOP_TS)
        self.assertIsNone(uploader.day_spans)
        self.assertEqual(uploader.uploaded, [])

    def test_remote_failure(self):
        uploader = FakeUploader()
        with mock.patch.object(uploader, 'get_timestamps',
                               side_effect=wunderfill.restx.BadLogin("Bad API key")):
            with self.assertRaises(wunderfill.restx.BadLogin):
                Filler('localhost', uploader).run(START_TS, STOP_TS)
        self.assertEqual(uploader.uploaded, [])

    def test_empty_archive(self):
        self.mock_get_archive.return_value = []
        uploader = FakeUploader()
        report = Filler('localhost', uploader).run(START_TS, STOP_TS)
        self.assertEqual(report.results, [])
        self.assertEqual(report.interval, 300)
        self.assertEqual(report.summary(), "0 of 0 missing records uploaded, 0 failed.")

    def test_no_remote_warning(self):
        with mock.patch('wunderfill.fill.log.warning') as mock_logwarn:
            Filler('localhost', FakeUploader(), test=True).run(START_TS, STOP_TS)
            mock_logwarn.assert_called_once()

    def test_report_lines(self):
        records = get_records()
        uploader = FakeUploader(remote_times=[records[0]['dateTime']])
        report = Filler('localhost', uploader, test=True).run(START_TS, STOP_TS)
        lines = list(report.lines())
        self.assertEqual(lines[1], "Found 3 archive records.")
        self.assertEqual(lines[2], "Found 1 Weather Underground observations.")
        self.assertEqual(lines[3], "Archive interval is 600 seconds.")
        self.assertEqual(len([line for line in lines if line.startswith("\tMissing")]), 2)
        self.assertEqual(lines[-2], "2 missing records not uploaded (test mode).")
        self.assertEqual(lines[-1], "0 of 2 missing records uploaded, 0 failed.")


if __name__ == '__main__':
    unittest.main()
