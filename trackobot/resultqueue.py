# SPDX-License-Identifier: GPL-2.0-or-later
"""Queue of results waiting to be uploaded to the web profile.

Results are uploaded one at a time, oldest first. After a successful upload,
the remaining results are rolled out slowly, one every UPLOAD_PERIOD. After a
failed upload, the result goes back to the queue and uploads are only retried
every CHECK_PERIOD, until the web profile answers again.

The queue is saved to the settings on close and loaded back (and removed from
the settings) on creation.
"""

import collections
import json
import logging

from trackobot.match import GameMode, GoingOrder, HeroClass, Outcome
from trackobot.monitoring import (
    trackobot_queue_size,
    trackobot_results_dropped,
    trackobot_results_uploaded,
    trackobot_upload_failures,
)
from trackobot.signals import Signal
from trackobot.timer import Timer
from trackobot.webprofile import UploadCallbacks

CHECK_PERIOD = 30 * 60
UPLOAD_PERIOD = 5 * 60

SETTINGS_KEY = 'resultsQueue'

IGNORED_MODES = {
    GameMode.SOLO_ADVENTURES: 'solo adventure',
    GameMode.TAVERN_BRAWL: 'tavern brawl',
}


class ResultQueue:
    """The upload queue. Must be created from within the event loop."""

    def __init__(self, settings, web_profile, check_period=CHECK_PERIOD,
                 upload_period=UPLOAD_PERIOD, requeue_at_head=False):
        self.settings = settings
        self.web_profile = web_profile
        # Failed uploads go back to the tail unless asked otherwise, even if
        # that reorders them behind results added during the outage.
        self.requeue_at_head = requeue_at_head
        self.queue = collections.deque()
        self.result_uploaded = Signal('result_uploaded')

        self.check_timer = Timer(self.check, check_period, name='check')
        self.upload_timer = Timer(self.upload, upload_period, name='upload')

        trackobot_queue_size.set_function(lambda: len(self.queue))

        self.load()
        self.check_timer.start()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def __len__(self):
        return len(self.queue)

    def load(self):
        if not self.settings.contains(SETTINGS_KEY):
            return

        snapshot = self.settings.get(SETTINGS_KEY)
        # Removed right away: a crash before the next save must not bring
        # back results that were uploaded in the meantime.
        self.settings.remove(SETTINGS_KEY)

        try:
            results = json.loads(snapshot)
            if not isinstance(results, list):
                raise ValueError('not a list')
        except (TypeError, ValueError) as e:
            logging.error('discarding unreadable saved results: %s', e)
            return

        for result in results:
            if isinstance(result, dict):
                self.queue.append(result)
            else:
                logging.warning('skipping malformed saved result: %r', result)
        logging.info('%d unsaved results found', len(self.queue))

    def save(self):
        logging.info('saving %d results', len(self.queue))
        self.settings.set(SETTINGS_KEY, json.dumps(list(self.queue)))

    def close(self):
        self.check_timer.stop()
        self.upload_timer.stop()
        self.save()

    async def add(self, res):
        """Queues the MatchResult `res` and starts uploading it, unless it is
        incomplete or from an ignored game mode."""
        if res.mode in IGNORED_MODES:
            logging.info('ignore %s', IGNORED_MODES[res.mode])
            trackobot_results_dropped.labels(reason=res.mode.value).inc()
            return

        missing = None
        if res.outcome == Outcome.UNKNOWN:
            missing = 'outcome'
        elif res.mode == GameMode.UNKNOWN:
            missing = 'mode'
        elif res.order == GoingOrder.UNKNOWN:
            missing = 'order'
        elif res.hero == HeroClass.UNKNOWN:
            missing = 'hero'
        elif res.opponent == HeroClass.UNKNOWN:
            missing = 'opponent'
        if missing is not None:
            logging.info('%s unknown. Skip result', missing)
            trackobot_results_dropped.labels(reason=missing).inc()
            return

        logging.info('result: %s', res)
        self.queue.append(res.as_json())
        await self.upload()

    async def upload(self):
        if not self.queue:
            return

        if len(self.queue) == 1:
            logging.info('upload result...')
        else:
            logging.info('found an old result. Uploading that first...')
        result = self.queue.popleft()

        await self.web_profile.upload_result(
            result, UploadCallbacks(self.upload_succeeded, self.upload_failed)
        )

    async def check(self):
        if self.upload_timer.is_active():
            # Upload works, nothing to be done
            return
        await self.upload()

    def upload_succeeded(self, response):
        trackobot_results_uploaded.inc()
        self.result_uploaded.emit(response['result']['id'])

        # If we have items in the queue, it's time to slowly roll them out
        if self.queue:
            self.upload_timer.start()
        else:
            self.upload_timer.stop()

    def upload_failed(self, result, code):
        logging.error('there was a problem uploading the result (code %d). '
                      'Will save the result locally and try again later.',
                      code)
        trackobot_upload_failures.labels(code=str(code)).inc()
        if self.requeue_at_head:
            self.queue.appendleft(result)
        else:
            self.queue.append(result)

        # Upload not working, check periodically from now on
        self.upload_timer.stop()
