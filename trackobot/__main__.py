# SPDX-License-Identifier: GPL-2.0-or-later
import asyncio
import json
import logging
import optparse
import sys
import threading

import trackobot.config
import trackobot.log

from .match import MatchResult
from .monitoring import monitoring_start
from .settings import Settings
from .tracker import Tracker


def read_lines(stream):
    """Returns an asyncio queue filled with the lines of `stream` by a daemon
    thread, so that a blocking read never holds back shutdown. The empty
    string marks the end of the stream."""
    loop = asyncio.get_event_loop()
    lines = asyncio.Queue()

    def reader():
        for line in stream:
            loop.call_soon_threadsafe(lines.put_nowait, line)
        loop.call_soon_threadsafe(lines.put_nowait, '')

    threading.Thread(target=reader, name='match-feed', daemon=True).start()
    return lines


async def feed_results(tracker, stream):
    """Feeds the JSON-lines match results of `stream` to the tracker."""
    lines = read_lines(stream)
    while True:
        line = await lines.get()
        if not line:
            logging.info('end of the match feed')
            return
        line = line.strip()
        if not line:
            continue
        try:
            res = MatchResult.from_json(json.loads(line))
        except ValueError as e:
            logging.error('skipping unreadable match result: %s', e)
            continue
        await tracker.add_result(res)


async def run(config, options):
    settings = Settings(options.settings or config['settings']['path'])
    tracker = Tracker(
        settings,
        debug=options.debug or config['debug'],
        timeout=config['webservice']['timeout'],
    )
    tracker.account_created.connect(
        lambda: logging.info('account created'))
    tracker.result_uploaded.connect(
        lambda result_id: logging.info('result %d uploaded', result_id))

    try:
        if options.url:
            tracker.web_profile.set_webservice_url(options.url)
        await tracker.ensure_account_is_set_up()

        if options.open_profile:
            url = await tracker.open_profile()
            if url is not None:
                print(url)
            return

        if options.input:
            with open(options.input, 'r', encoding='utf-8') as stream:
                await feed_results(tracker, stream)
        else:
            await feed_results(tracker, sys.stdin)

        # Keep retrying pending results until interrupted
        await asyncio.Event().wait()
    finally:
        tracker.close()


if __name__ == '__main__':
    # Argument parsing
    parser = optparse.OptionParser()
    parser.add_option(
        '-l',
        '--local-logging',
        action='store_true',
        dest='local_logging',
        default=False,
        help='Activate logging to stderr.',
    )
    parser.add_option(
        '-v',
        '--verbose',
        action='store_true',
        dest='verbose',
        default=False,
        help='Verbose mode.',
    )
    parser.add_option(
        '-d',
        '--debug',
        action='store_true',
        dest='debug',
        default=False,
        help='Debug mode: upload practice games too.',
    )
    parser.add_option(
        '-s',
        '--settings',
        dest='settings',
        default=None,
        help='Path of the settings file.',
    )
    parser.add_option(
        '-u',
        '--url',
        dest='url',
        default=None,
        help='Use (and remember) this web profile URL.',
    )
    parser.add_option(
        '-p',
        '--open-profile',
        action='store_true',
        dest='open_profile',
        default=False,
        help='Open the web profile in a browser and exit.',
    )
    parser.add_option(
        '-i',
        '--input',
        dest='input',
        default=None,
        help='Read match results from this file instead of stdin.',
    )
    options, args = parser.parse_args()

    # Config
    config = trackobot.config.load(
        'trackobot', defaults=trackobot.config.DEFAULT_CONFIG
    )

    # Logging
    trackobot.log.setup_logging(
        'trackobot',
        verbose=options.verbose,
        local=options.local_logging,
        logfile=config['log']['file'],
    )
    logging.getLogger('asyncio').setLevel(logging.WARNING)
    logging.getLogger('aiohttp.client').setLevel(logging.WARNING)

    # Monitoring
    if config['monitoring']['port']:
        monitoring_start(config['monitoring']['port'])

    try:
        asyncio.run(run(config, options))
    except KeyboardInterrupt:
        pass
