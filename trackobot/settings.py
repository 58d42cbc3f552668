# SPDX-License-Identifier: GPL-2.0-or-later
"""Persistent key/value store for credentials, the web service URL and the
pending results.

Values are read from disk on every access and written through on every
change, so that the file always reflects the latest state. When the file
cannot be read or written, the error is logged and the store keeps working
from memory for the rest of the session.
"""

import logging
import os
import os.path
import tempfile

import yaml


class Settings:
    """YAML file backed settings. Not thread-safe."""

    def __init__(self, path):
        self.path = os.path.expanduser(path)
        self._values = {}
        # Set once a write failed: from then on, memory is authoritative.
        self.in_memory = False
        self._reload()

    def _reload(self):
        if self.in_memory:
            return
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                values = yaml.safe_load(f)
        except FileNotFoundError:
            return
        except (OSError, yaml.YAMLError) as e:
            logging.error('cannot read settings from %s, using in-memory '
                          'values: %s', self.path, e)
            return

        if values is None:
            values = {}
        if not isinstance(values, dict):
            logging.error('ignoring malformed settings file %s', self.path)
            return
        self._values = values

    def _write(self):
        directory = os.path.dirname(self.path) or '.'
        try:
            os.makedirs(directory, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=directory, prefix='.settings')
            try:
                with os.fdopen(fd, 'w', encoding='utf-8') as f:
                    yaml.safe_dump(self._values, f, default_flow_style=False)
                os.replace(tmp_path, self.path)
            except BaseException:
                os.unlink(tmp_path)
                raise
        except (OSError, yaml.YAMLError) as e:
            logging.error('cannot write settings to %s, keeping them in '
                          'memory: %s', self.path, e)
            self.in_memory = True

    def contains(self, key):
        self._reload()
        return key in self._values

    def get(self, key, default=None):
        self._reload()
        return self._values.get(key, default)

    def set(self, key, value):
        self._reload()
        self._values[key] = value
        self._write()

    def remove(self, key):
        self._reload()
        if key in self._values:
            del self._values[key]
            self._write()
