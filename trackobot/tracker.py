# SPDX-License-Identifier: GPL-2.0-or-later
import dataclasses
import logging

from trackobot import PLATFORM, VERSION
from trackobot.match import (
    COIN_CARD_ID,
    GameMode,
    GoingOrder,
    HeroClass,
    Outcome,
    Player,
)
from trackobot.monitoring import trackobot_results_dropped
from trackobot.resultqueue import ResultQueue
from trackobot.webprofile import WebProfile


def order_from_card_history(card_history):
    """Guesses the going order from the first time The Coin was played."""
    for entry in card_history:
        if entry.card_id == COIN_CARD_ID:
            if entry.player == Player.SELF:
                logging.info('order fallback. Went second')
                return GoingOrder.SECOND
            # The opponent went second, so I went first
            logging.info('order fallback. Went first')
            return GoingOrder.FIRST
    return GoingOrder.UNKNOWN


class Tracker:
    """Entry point of the result pipeline, owned by the shell.

    Validates the results reported by the match observer, keeps statistics
    about their quality and hands them over to the upload queue.
    """

    def __init__(self, settings, debug=False, timeout=30, http_client=None,
                 **queue_options):
        self.settings = settings
        self.debug = debug

        self.success_count = 0
        self.unknown_outcome_count = 0
        self.unknown_mode_count = 0
        self.unknown_order_count = 0
        self.unknown_class_count = 0
        self.unknown_opponent_count = 0
        self.screen_width = 0
        self.screen_height = 0

        self.web_profile = WebProfile(settings, meta=self.meta,
                                      timeout=timeout,
                                      http_client=http_client)
        self.result_queue = ResultQueue(settings, self.web_profile,
                                        **queue_options)

        self.account_created = self.web_profile.account_created
        self.result_uploaded = self.result_queue.result_uploaded

    def set_screen_size(self, width, height):
        self.screen_width, self.screen_height = width, height

    def meta(self):
        """Metadata sent with each result to find out room for improvement."""
        return [
            self.success_count,
            self.unknown_outcome_count,
            self.unknown_mode_count,
            self.unknown_order_count,
            self.unknown_class_count,
            self.unknown_opponent_count,
            self.screen_width,
            self.screen_height,
            VERSION,
            PLATFORM,
        ]

    async def ensure_account_is_set_up(self):
        if not self.web_profile.is_account_set_up():
            logging.info('no account setup. Creating one for you.')
            await self.web_profile.create_account()
        else:
            logging.info('account %s found', self.web_profile.username)

    async def open_profile(self):
        return await self.web_profile.open_profile()

    async def add_result(self, res):
        if not self.debug and res.mode == GameMode.PRACTICE:
            logging.info('ignore practice game.')
            trackobot_results_dropped.labels(reason='practice').inc()
            return

        if self.debug:
            logging.debug('card history: %s', ', '.join(
                '{} {}'.format(entry.player.name, entry.card_id)
                for entry in res.card_history
            ))

        if res.order == GoingOrder.UNKNOWN:
            # Order marker wasn't found, look it up in the card history
            res = dataclasses.replace(
                res, order=order_from_card_history(res.card_history)
            )

        if res.outcome == Outcome.UNKNOWN:
            self.unknown_outcome_count += 1
            logging.info('outcome unknown. Skip result')
            trackobot_results_dropped.labels(reason='outcome').inc()
            return

        if res.mode == GameMode.UNKNOWN:
            self.unknown_mode_count += 1
            logging.info('mode unknown. Skip result')
            trackobot_results_dropped.labels(reason='mode').inc()
            return

        if res.order == GoingOrder.UNKNOWN:
            self.unknown_order_count += 1
            logging.info('order unknown. Skip result')
            trackobot_results_dropped.labels(reason='order').inc()
            return

        if res.hero == HeroClass.UNKNOWN:
            self.unknown_class_count += 1
            logging.info('own class unknown. Skip result')
            trackobot_results_dropped.labels(reason='hero').inc()
            return

        if res.opponent == HeroClass.UNKNOWN:
            self.unknown_opponent_count += 1
            logging.info('class of opponent unknown. Skip result')
            trackobot_results_dropped.labels(reason='opponent').inc()
            return

        self.success_count += 1
        await self.result_queue.add(res)

    def close(self):
        self.result_queue.close()
