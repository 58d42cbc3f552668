# SPDX-License-Identifier: GPL-2.0-or-later
"""Minimal observer helper used to notify the shell about pipeline events."""

import logging


class Signal:
    """A list of subscribers invoked, in connection order, on each emission.

    A failing subscriber is logged and does not prevent the others from being
    notified.
    """

    def __init__(self, name):
        self.name = name
        self.subscribers = []

    def connect(self, callback):
        self.subscribers.append(callback)

    def emit(self, *args):
        logging.debug('emitting %s%s to %d subscriber(s)', self.name, args,
                      len(self.subscribers))
        for callback in list(self.subscribers):
            try:
                callback(*args)
            except Exception as e:
                logging.exception('error in %s subscriber: %s', self.name, e)

    def __repr__(self):
        return '<Signal {} ({} subscribers)>'.format(
            self.name, len(self.subscribers))
