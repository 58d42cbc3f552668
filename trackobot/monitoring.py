# SPDX-License-Identifier: GPL-2.0-or-later
from prometheus_client import start_http_server, Counter, Gauge

trackobot_results_uploaded = Counter(
    'trackobot_results_uploaded',
    'Number of results acknowledged by the web profile',
)

trackobot_upload_failures = Counter(
    'trackobot_upload_failures',
    'Number of failed result uploads',
    ['code'],
)

trackobot_results_dropped = Counter(
    'trackobot_results_dropped',
    'Number of results dropped before upload',
    ['reason'],
)

trackobot_queue_size = Gauge(
    'trackobot_queue_size',
    'Number of results waiting for upload',
)


def monitoring_start(port):
    start_http_server(port)
