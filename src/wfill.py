#
#    Copyright (c) 2024 The wunderfill developers
#
#    See the file LICENSE.txt for your rights.
#
"""Entry point to the wunderfill program 'wfill'.

This utility fills in missing data on the Weather Underground. It goes through all the
records in the archive of a station logger for a range of days, comparing to see whether a
corresponding observation exists on the Weather Underground. If not, it will publish a new
observation with the missing data.
"""

import argparse
import datetime
import http.client
import logging
import sys

import configobj

import wfcfg
import wfutil.logger
import wunderfill
import wunderfill.fill
import wunderfill.restx
from wfutil.wfutil import bcolors, date_to_ts, to_int

log = logging.getLogger(__name__)

usagestr = """%(prog)s [--config=FILENAME]
             [--station=ADDRESS] [--id=STATION_ID]
             [--password=PASSWORD] [--api-key=API_KEY]
             [--date=YYYY-mm-dd | --begin=YYYY-mm-dd --end=YYYY-mm-dd]
             [--timeout=SECONDS] [--test] [--verbose]
       %(prog)s -v|--version
       %(prog)s -h|--help"""

description = """%(prog)s fills in missing data on the Weather Underground. It compares the
archive of a station logger with the observations held by the Weather Underground, then
publishes any archive record that has no counterpart. Be sure to use the --test switch first
to see whether you like what it proposes!"""

epilog = """Options 'station', 'id', and 'api-key' must be supplied either on the command line,
or in the configuration file. A password is needed to publish anything."""


def parse_dates(date=None, begin=None, end=None, today=None):
    """Parse --date, --begin and --end command line options.

        Args:
            date(str|None): In the form YYYY-mm-dd
            begin(str|None): In the form YYYY-mm-dd. Default is today.
            end(str|None): In the form YYYY-mm-dd. Default is today.
            today(datetime.date|None): What "today" is. Default is the local date.

        Returns:
            tuple: A two-way tuple (begin, end) of datetime.date objects. Both days are
                included.
    """
    if today is None:
        today = datetime.date.today()

    if date:
        # we have a --date option, make sure we are not over specified
        if begin or end:
            raise ValueError("Specify either --date or a --begin and --end combination; not both")
        try:
            begin_d = end_d = datetime.date.fromisoformat(date)
        except ValueError:
            raise ValueError("Invalid --date option specified.")
        return begin_d, end_d

    try:
        begin_d = datetime.date.fromisoformat(begin) if begin else today
    except ValueError:
        raise ValueError("Invalid --begin option specified.")
    try:
        end_d = datetime.date.fromisoformat(end) if end else today
    except ValueError:
        raise ValueError("Invalid --end option specified.")

    if begin_d > end_d:
        raise wunderfill.ViolatedPrecondition("--begin value is later than --end value.")

    return begin_d, end_d


def get_window(begin_d, end_d):
    """Return the time window [start, stop) covering the days begin_d through end_d,
    in unix epoch time."""
    return date_to_ts(begin_d), date_to_ts(end_d + datetime.timedelta(days=1))


def get_parser():
    parser = argparse.ArgumentParser(usage=usagestr, description=description, epilog=epilog)
    parser.add_argument("-v", "--version", action='version',
                        version=f"wfill {wunderfill.__version__}")
    parser.add_argument('-c', '--config',
                        metavar='FILENAME',
                        help=f'Path to configuration file. '
                             f'Default is "{wfcfg.default_config_path}", if it exists.')
    parser.add_argument('-s', '--station', metavar='ADDRESS',
                        help='Network address of the station logger, as host[:port]. '
                             'Default is to take from configuration file.')
    parser.add_argument('-i', '--id', metavar='STATION_ID',
                        help='Weather Underground station ID. '
                             'Default is to take from configuration file.')
    parser.add_argument('-p', '--password',
                        help='Weather Underground station password. '
                             'Default is to take from configuration file.')
    parser.add_argument('-k', '--api-key',
                        help='Weather Underground API key. '
                             'Default is to take from configuration file.')
    parser.add_argument('-d', '--date', metavar='YYYY-mm-dd',
                        help='Single date to fill. Default is today.')
    parser.add_argument('-b', '--begin', metavar='YYYY-mm-dd',
                        help='First date to fill. Default is today.')
    parser.add_argument('-e', '--end', metavar='YYYY-mm-dd',
                        help='Last date to fill. Default is today.')
    parser.add_argument('-o', '--timeout', type=int, metavar='SECONDS',
                        help='Socket timeout in seconds. Default is 10.')
    parser.add_argument('-t', '--test', action='store_true',
                        help="Test what would happen, but don't upload anything.")
    parser.add_argument('--verbose', action='store_true',
                        help='Print useful extra output.')
    return parser


def main(argv=None):
    """main program body for wfill"""

    parser = get_parser()
    namespace = parser.parse_args(argv)

    # Read the configuration file
    try:
        config_path, config_dict = wfcfg.read_config(namespace.config)
    except (IOError, configobj.ConfigObjError) as e:
        print(f"Error parsing config file: {e}", file=sys.stderr)
        sys.exit(wunderfill.CONFIG_ERROR)

    if config_path:
        print(f"Using configuration file {bcolors.BOLD}{config_path}{bcolors.ENDC}")

    wunderfill.debug = to_int(config_dict.get('debug', 0))

    try:
        # Customize the logging with user settings.
        wfutil.logger.setup('wfill', config_dict, verbose=namespace.verbose)
    except Exception as e:
        print(f"Unable to set up logger: {e}", file=sys.stderr)
        sys.exit(wunderfill.CONFIG_ERROR)

    log.info("Initializing wfill version %s", wunderfill.__version__)
    log.info("Command line: %s", ' '.join(sys.argv))

    station_dict = wfcfg.get_section(config_dict, 'Station')
    wu_dict = wfcfg.get_section(config_dict, 'Wunderground')

    # Options on the command line override the configuration file
    address = namespace.station or station_dict.get('address')
    station_id = namespace.id or wu_dict.get('station')
    password = namespace.password or wu_dict.get('password', '')
    api_key = namespace.api_key or wu_dict.get('api_key')
    timeout = namespace.timeout or to_int(station_dict.get('timeout', 10))

    # exit if any essential arguments are not present
    if not address or not station_id or not api_key:
        print("Missing argument(s).\n", file=sys.stderr)
        parser.print_usage(sys.stderr)
        log.error("Missing argument(s). wfill exiting.")
        sys.exit(wunderfill.CMD_ERROR)

    try:
        begin_d, end_d = parse_dates(namespace.date, namespace.begin, namespace.end)
    except ValueError as e:
        print(e, file=sys.stderr)
        parser.print_usage(sys.stderr)
        sys.exit(wunderfill.CMD_ERROR)
    start_ts, stop_ts = get_window(begin_d, end_d)

    if not password and not namespace.test:
        print(f"{bcolors.WARNING}No password given. Nothing can be published.{bcolors.ENDC}")

    wunder = wunderfill.restx.WunderStation(
        api_key,
        station=station_id,
        password=password,
        server_url=wu_dict.get('server_url', wunderfill.restx.WunderStation.pws_url),
        rapidfire_url=wu_dict.get('rapidfire_url', wunderfill.restx.WunderStation.rf_url),
        protocol_name='wfill',
        timeout=timeout,
        max_tries=wu_dict.get('max_tries', 1),
        retry_wait=wu_dict.get('retry_wait', 5),
        softwaretype="wfill-%s" % wunderfill.__version__)

    filler = wunderfill.fill.Filler(address, wunder, test=namespace.test, timeout=timeout)

    if namespace.test:
        print("This is a test run. Nothing will actually be uploaded.")

    try:
        report = filler.run(start_ts, stop_ts)
    except (IOError, http.client.HTTPException, wunderfill.MalformedResponse,
            wunderfill.restx.BadLogin) as e:
        print(f"Could not get data: {e}", file=sys.stderr)
        log.error("Could not get data: %s. Exiting.", e)
        sys.exit(wunderfill.IO_ERROR)

    for line in report.lines():
        print(line)
    print("Done!")


if __name__ == "__main__":
    # Start up the program
    main()
