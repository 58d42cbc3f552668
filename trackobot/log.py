# SPDX-License-Identifier: GPL-2.0-or-later
import os

import logging
import logging.handlers


SYSLOG_SOCKET = '/dev/log'


def setup_logging(program, verbose=False, local=True, logfile=None):
    """Sets up the default Python logger.

    Log to syslog when the host has one, to `logfile` otherwise, and
    optionaly to stderr.

    Args:
      program: Name of the program logging informations.
      verbose: If true, log more messages (DEBUG instead of INFO).
      local: If true, log to stderr as well.
      logfile: Path of a log file to use when syslog is not available.
    """
    loggers = []
    if os.path.exists(SYSLOG_SOCKET):
        loggers.append(logging.handlers.SysLogHandler(SYSLOG_SOCKET))
    elif logfile:
        loggers.append(logging.handlers.RotatingFileHandler(
            os.path.expanduser(logfile), maxBytes=1 << 20, backupCount=3,
            encoding='utf-8'))
    if local:
        loggers.append(logging.StreamHandler())
    for logger in loggers:
        logger.setFormatter(logging.Formatter(
            program + ': [%(levelname)s] %(message)s'
        ))
        logging.getLogger('').addHandler(logger)
    logging.getLogger('').setLevel(logging.DEBUG if verbose else logging.INFO)
