import pytest

import trackobot.config


def test_missing_profile(cfg_dir):
    with pytest.raises(trackobot.config.ConfigReadError):
        trackobot.config.load('trackobot')


def test_missing_profile_defaults(cfg_dir):
    cfg = trackobot.config.load('trackobot',
                                defaults=trackobot.config.DEFAULT_CONFIG)
    assert cfg == trackobot.config.DEFAULT_CONFIG
    assert cfg is not trackobot.config.DEFAULT_CONFIG


def test_merge_over_defaults(cfg_dir):
    (cfg_dir / 'trackobot.yml').write_text(
        'debug: true\n'
        'webservice:\n'
        '  timeout: 5\n'
    )
    cfg = trackobot.config.load('trackobot',
                                defaults=trackobot.config.DEFAULT_CONFIG)
    assert cfg['debug'] is True
    assert cfg['webservice'] == {'timeout': 5}
    assert cfg['monitoring'] == {'port': None}
    # Defaults are left untouched.
    assert trackobot.config.DEFAULT_CONFIG['webservice'] == {'timeout': 30}


def test_cached(cfg_dir):
    path = cfg_dir / 'trackobot.yml'
    path.write_text('debug: true\n')
    first = trackobot.config.load('trackobot')
    path.write_text('debug: false\n')
    assert trackobot.config.load('trackobot') is first


def test_invalid_yaml(cfg_dir):
    (cfg_dir / 'trackobot.yml').write_text('debug: [oops\n')
    with pytest.raises(trackobot.config.ConfigReadError):
        trackobot.config.load('trackobot')
