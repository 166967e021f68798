#
#    Copyright (c) 2024 The wunderfill developers
#
#    See the file LICENSE.txt for your full rights.
#
"""Talk to the Weather Underground.

Two things are needed from the WU:

 o The time stamps of the observations it already holds for a station. These
   come from the PWS API, version 2, which requires an API key. Details of the
   API for downloading historical data can be found here:
   https://docs.google.com/document/d/1w8jbqfAk0tfZS5P7hYnar1JiitM0gQZB-clxDfG3aD0/edit

 o A way to post an observation. This uses the "Ambient" protocol, an HTTP GET
   with the observation encoded in the query string. See
   https://support.weather.com/s/article/PWS-Upload-Protocol?language=en_US

WU response codes when downloading observations:
- When using the "1day" API
   o Normal                    | 200
   o Non-existent station      | 204
   o Bad api key               | 401
- When using the "history" API
   o Normal                    | 200
   o Non-existent station      | 204
   o Good station, but no data | 204
   o Bad api key               | 401

Unfortunately, there is no reliable way to tell the difference between a request for a
non-existing station, and a request for a date with no data.
"""

import datetime
import gzip
import http.client
import json
import logging
import re
import socket
import time
import urllib.error
import urllib.parse
import urllib.request

import wunderfill
from wfutil.wfutil import to_int, timestamp_to_string

log = logging.getLogger(__name__)


class FailedPost(IOError):
    """The server would not take a post. Retrying is unlikely to help."""


class BadLogin(Exception):
    """Station ID, password or API key is missing or rejected."""


# ==============================================================================
#                    class AmbientUploader
# ==============================================================================

class AmbientUploader(object):
    """Posts payloads to a server that speaks the Ambient PWS protocol."""

    def __init__(self,
                 station,
                 password,
                 server_url,
                 rapidfire_url=None,
                 protocol_name="Ambient",
                 timeout=10,
                 max_tries=1,
                 retry_wait=5,
                 softwaretype="wunderfill-%s" % wunderfill.__version__):
        """Initializer for the AmbientUploader class.

          station: Station ID, such as "KORHOODR3".

          password: Station password. If empty, every upload fails with BadLogin.

          server_url: Where regular posts go.

          rapidfire_url: Where posts go when records are less than a minute
          apart. Default is server_url.

          protocol_name: Used to label log entries.

          timeout: Socket timeout in seconds. Default is 10.

          max_tries: Attempts per post before giving up. Default is 1.

          retry_wait: Seconds between attempts. Default is 5.

          softwaretype: Reported to the server in field "softwaretype".
        """
        self.station = station
        self.password = password
        self.server_url = server_url
        self.rapidfire_url = rapidfire_url or server_url
        self.protocol_name = protocol_name
        self.timeout = to_int(timeout)
        self.max_tries = to_int(max_tries)
        self.retry_wait = to_int(retry_wait)
        self.softwaretype = softwaretype

    # Payload key, and how it appears in the query string.
    # See https://support.weather.com/s/article/PWS-Upload-Protocol?language=en_US
    _FORMATS = {
        'barometer': 'baromin=%.3f',
        'dateTime': 'dateutc=%s',
        'dayRain': 'dailyrainin=%.2f',
        'dewpoint': 'dewptf=%.1f',
        'outHumidity': 'humidity=%03.0f',
        'outTemp': 'tempf=%.1f',
        'radiation': 'solarradiation=%.2f',
        # The WU calls the rain rate "rainin", the rain over the past hour.
        'rainRate': 'rainin=%.2f',
        'realtime': 'realtime=%d',
        'rtfreq': 'rtfreq=%.1f',
        'soilMoist1': 'soilmoisture=%03.0f',
        'soilMoist2': 'soilmoisture2=%03.0f',
        'soilMoist3': 'soilmoisture3=%03.0f',
        'soilMoist4': 'soilmoisture4=%03.0f',
        'soilTemp1': 'soiltempf=%.1f',
        'soilTemp2': 'soiltemp2f=%.1f',
        'soilTemp3': 'soiltemp3f=%.1f',
        'soilTemp4': 'soiltemp4f=%.1f',
        'UV': 'UV=%.2f',
        'windDir': 'winddir=%03.0f',
        'windGust': 'windgustmph=%03.1f',
        'windGustDir': 'windgustdir=%03.0f',
        'windSpeed': 'windspeedmph=%03.1f',
    }

    # Records closer together than this, in seconds, go to the RapidFire server.
    rapidfire_interval = 60

    def upload(self, payload):
        """Post a single payload.

        Raises:
            BadLogin: If there is no password, or the server rejects the login.
            FailedPost: If the server rejected the data, or no attempt succeeded.
        """
        if not self.password:
            raise BadLogin("password is needed to upload")
        self.post_with_retries(self.get_request(self.format_url(payload)))
        log.info("%s: Published record %s", self.protocol_name,
                 timestamp_to_string(payload['dateTime']))

    def format_url(self, payload):
        """Return the URL that posts a payload with the Ambient protocol."""

        _record = dict(payload)
        _server_url = self.server_url
        _interval = _record.pop('interval', None)
        if _interval is not None and _interval < self.rapidfire_interval:
            _server_url = self.rapidfire_url
            _record.update(realtime=1, rtfreq=_interval)

        _fields = ["action=updateraw",
                   "ID=%s" % self.station,
                   "PASSWORD=%s" % urllib.parse.quote(self.password),
                   "softwaretype=%s" % self.softwaretype]
        for _key in sorted(self._FORMATS):
            _v = _record.get(_key)
            if _v is None:
                continue
            if _key == 'dateTime':
                # UTC, as in '2018-03-22%2007%3A00%3A00'
                _dt = datetime.datetime.fromtimestamp(_v, datetime.timezone.utc)
                _v = urllib.parse.quote(_dt.strftime('%Y-%m-%d %H:%M:%S'))
            _fields.append(self._FORMATS[_key] % _v)

        _url = "%s?%s" % (_server_url, '&'.join(_fields))
        if wunderfill.debug:
            log.debug("%s: url: %s", self.protocol_name,
                      re.sub(r"PASSWORD=[^&]*", "PASSWORD=XXX", _url))
        return _url

    def get_request(self, url):
        """Wrap a URL in a Request. Subclasses can add headers here."""
        _request = urllib.request.Request(url)
        _request.add_header("User-Agent", "wunderfill/%s" % wunderfill.__version__)
        return _request

    def post_with_retries(self, request):
        """Make up to max_tries attempts at a post.

        Transport errors, including a body that is cut short, and bad response
        codes are logged, then retried. A rejection by the server is not retried.

        request: An instance of urllib.request.Request
        """
        for _count in range(self.max_tries):
            if _count:
                time.sleep(self.retry_wait)
            try:
                _response = urllib.request.urlopen(request, timeout=self.timeout)
            except urllib.error.HTTPError as e:
                if e.code == 401:
                    raise BadLogin("Bad login: %s" % e)
                self.handle_exception(e, _count + 1)
                continue
            except (urllib.error.URLError, socket.error, http.client.HTTPException) as e:
                self.handle_exception(e, _count + 1)
                continue

            if 200 <= _response.code <= 299:
                # A good code can still carry a rejection in the body
                try:
                    self.check_response(_response)
                except FailedPost:
                    raise
                except (http.client.HTTPException, socket.error) as e:
                    # The body was cut short
                    self.handle_exception(e, _count + 1)
                    continue
                return
            self.handle_code(_response.code, _count + 1)

        raise FailedPost("Failed upload after %d tries" % self.max_tries)

    def check_response(self, response):
        """Look through the body of a response for an Ambient error."""
        for line in response:
            if line.startswith(b'ERROR'):
                # Bad ID or password
                raise BadLogin(line.decode('utf-8', 'replace').strip())
            elif b'invalid' in line:
                # Garbled data
                raise FailedPost(line.decode('utf-8', 'replace').strip())

    def handle_code(self, code, count):
        """Log a bad response code."""
        log.debug("%s: Failed upload attempt %d: Code %s", self.protocol_name, count, code)

    def handle_exception(self, e, count):
        """Log a failed attempt."""
        log.debug("%s: Failed upload attempt %d: %s", self.protocol_name, count, e)


# ===============================================================================
#                             class WunderStation
# ===============================================================================

class WunderStation(AmbientUploader):
    """A Weather Underground station: what it holds, and how to post to it."""

    # the RapidFire URL:
    rf_url = "https://rtupdate.wunderground.com/weatherstation/updateweatherstation.php"
    # the personal weather station URL:
    pws_url = "https://weatherstation.wunderground.com/weatherstation/updateweatherstation.php"
    # the PWS observations API:
    api_url = "https://api.weather.com/v2/pws"

    def __init__(self, api_key, **kwargs):
        self.api_key = api_key
        kwargs.setdefault('server_url', WunderStation.pws_url)
        kwargs.setdefault('rapidfire_url', WunderStation.rf_url)
        kwargs.setdefault('protocol_name', 'Wunderground')
        super(WunderStation, self).__init__(**kwargs)

    def day_url(self, day_requested):
        """Return the URL for the observations of a day."""
        # Today comes from a different API than earlier days.
        if day_requested >= datetime.date.today():
            return "%s/observations/all/1day?stationId=%s&format=json&units=e&apiKey=%s" \
                   % (self.api_url, self.station, self.api_key)
        return "%s/history/all?stationId=%s&format=json&units=e&date=%s&apiKey=%s" \
               % (self.api_url, self.station, day_requested.strftime('%Y%m%d'), self.api_key)

    def get_day_timestamps(self, day_requested):
        """Return the time stamps, in unix epoch time, of the observations the WU holds
        for a day.

        day_requested: A datetime.date

        Raises:
            BadLogin: If the API key is rejected.
            IOError: If the WU cannot be reached, answers with an unexpected code,
                or the answer is cut short.
            wunderfill.MalformedResponse: If the answer cannot be decoded.
        """
        request = urllib.request.Request(self.day_url(day_requested))
        request.add_header('Accept-Encoding', 'gzip')
        request.add_header('User-Agent', 'wunderfill/%s' % wunderfill.__version__)

        try:
            response = urllib.request.urlopen(request, timeout=self.timeout)
        except urllib.error.HTTPError as e:
            if e.code == 401:
                log.error("Bad API key for Weather Underground station %s", self.station)
                raise BadLogin("Bad API key: %s" % e)
            log.error("Unable to open Weather Underground station %s: %s", self.station, e)
            raise
        except (urllib.error.URLError, socket.timeout) as e:
            log.error("Unable to open Weather Underground station %s: %s", self.station, e)
            raise
        except http.client.HTTPException as e:
            log.error("Unable to open Weather Underground station %s: %s", self.station, e)
            raise IOError("Bad response from Weather Underground: %s" % e)

        if response.code == 204:
            log.debug("Bad station (%s) or date (%s)", self.station, day_requested)
            return []
        if response.code == 401:
            # Normally arrives as an HTTPError
            raise BadLogin("Bad login")
        if response.code != 200:
            raise IOError("Bad response code returned: %d" % response.code)

        # The API asks for gzip, but the WU does not always compress.
        try:
            data = response.read()
        except http.client.HTTPException as e:
            raise IOError("Incomplete response from Weather Underground: %s" % e)
        if response.info().get('Content-Encoding') == 'gzip':
            data = gzip.decompress(data)

        try:
            wu_data = json.loads(data.decode('utf-8'))
            return [int(obs['epoch']) for obs in wu_data['observations']]
        except (ValueError, KeyError, TypeError) as e:
            raise wunderfill.MalformedResponse("Unexpected Weather Underground response "
                                               "for %s: %s" % (day_requested, e))

    def get_timestamps(self, day_spans):
        """Return the time stamps of all observations held for a sequence of days.

        day_spans: An iterable of TimeSpan, one per local day.
        """
        time_stamps = []
        for span in day_spans:
            day = datetime.date.fromtimestamp(span.start)
            _ts = self.get_day_timestamps(day)
            log.debug("Found %d Weather Underground observations for %s", len(_ts), day)
            time_stamps.extend(_ts)
        return time_stamps
