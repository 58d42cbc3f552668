# SPDX-License-Identifier: GPL-2.0-or-later
"""Repeating timers running coroutines on the asyncio event loop."""

import asyncio
import logging


class Timer:
    """Calls the `callback` coroutine function every `interval` seconds once
    started.

    Each fire spawns the callback as a new task. Stopping the timer only
    cancels the pending fire: a callback that is already running completes
    normally, and may itself restart or stop the timer.
    """

    def __init__(self, callback, interval, name=None):
        self.callback = callback
        self.interval = interval
        self.name = name or getattr(callback, '__name__', 'timer')
        self.tasks = set()
        self._handle = None

    def is_active(self):
        return self._handle is not None

    def start(self, interval=None):
        """(Re)start the timer: the next fire is `interval` seconds away."""
        if interval is not None:
            self.interval = interval
        self.stop()
        self._schedule()

    def stop(self):
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _schedule(self):
        loop = asyncio.get_event_loop()
        self._handle = loop.call_later(self.interval, self._fire)

    def _fire(self):
        logging.debug('%s timer fired', self.name)
        self._schedule()
        task = asyncio.ensure_future(self.callback())
        self.tasks.add(task)
        task.add_done_callback(self._task_done)

    def _task_done(self, task):
        self.tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logging.error('error in %s timer callback', self.name,
                          exc_info=exc)

    async def wait(self):
        """Wait for the callbacks spawned so far to complete."""
        while self.tasks:
            await asyncio.gather(*self.tasks, return_exceptions=True)

    def __repr__(self):
        return '<Timer {} every {}s, {}>'.format(
            self.name, self.interval,
            'active' if self.is_active() else 'stopped')
