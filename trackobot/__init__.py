# SPDX-License-Identifier: GPL-2.0-or-later
"""Track-o-Bot forwards the results of finished Hearthstone matches to a
Track-o-Bot web profile.

Results reported by the match observer are validated by the
:class:`~trackobot.tracker.Tracker`, queued by the
:class:`~trackobot.resultqueue.ResultQueue` and uploaded one at a time by the
:class:`~trackobot.webprofile.WebProfile` client.

Track-o-Bot configuration elements (profile ``trackobot``) are:

* **debug** a boolean, whether practice games are uploaded too
* **settings.path** where credentials and the pending results are persisted
* **log.file** a log file used when syslog is not available (optional)
* **webservice.timeout** the total timeout of a web profile request, in seconds
* **monitoring.port** the port of the Prometheus exporter (optional)

Pending results survive restarts: the queue is saved to the settings file on
shutdown and loaded back on startup. When the web profile cannot be reached,
uploads are retried every 30 minutes; once it answers again, the backlog is
rolled out at a pace of one result every 5 minutes.
"""

import sys

VERSION = '1.0'

if sys.platform.startswith('win'):
    PLATFORM = 'win'
elif sys.platform == 'darwin':
    PLATFORM = 'mac'
else:
    PLATFORM = 'linux'

USER_AGENT = 'Track-o-Bot/' + VERSION + PLATFORM
