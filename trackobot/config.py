# SPDX-License-Identifier: GPL-2.0-or-later
"""Configuration loading logic."""

import copy
import os
import os.path
import yaml

DEFAULT_CFG_DIR = '~/.config/trackobot'
LOADED_CONFIGS = {}

DEFAULT_CONFIG = {
    'debug': False,
    'settings': {
        'path': os.path.join(DEFAULT_CFG_DIR, 'settings.yml'),
    },
    'log': {
        'file': None,
    },
    'webservice': {
        'timeout': 30,
    },
    'monitoring': {
        'port': None,
    },
}


class ConfigReadError(Exception):
    pass


def merge(defaults, cfg):
    """Return `defaults` updated with `cfg`, merging sections one level
    deep."""
    merged = copy.deepcopy(defaults)
    for key, value in (cfg or {}).items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key].update(value)
        else:
            merged[key] = value
    return merged


def load(profile, defaults=None):
    """Load (if needed) and return the configuration file for `profile`.

    Profile configurations are cached. Look for configuration profiles in the
    "TRACKOBOT_CFG_DIR" environment variable if it is set, or in the
    DEFAULT_CFG_DIR otherwise. When `defaults` is given, the file content is
    merged over it and a missing file yields the defaults; otherwise a missing
    file raises a ConfigReadError.
    """

    try:
        return LOADED_CONFIGS[profile]
    except KeyError:
        pass

    cfg_filename = '{}.yml'.format(profile)
    cfg_directory = os.environ.get('TRACKOBOT_CFG_DIR', DEFAULT_CFG_DIR)
    cfg_path = os.path.join(os.path.expanduser(cfg_directory), cfg_filename)

    try:
        with open(cfg_path, 'r') as cfg_fp:
            cfg = yaml.safe_load(cfg_fp)
    except IOError:
        if defaults is None:
            raise ConfigReadError("%s does not exist (specify "
                                  "TRACKOBOT_CFG_DIR?)" % cfg_path)
        cfg = None
    except yaml.YAMLError as e:
        raise ConfigReadError("%s is not valid YAML: %s" % (cfg_path, e))

    if defaults is not None:
        cfg = merge(defaults, cfg)

    LOADED_CONFIGS[profile] = cfg

    return cfg
