#! /usr/bin/env python
# SPDX-License-Identifier: GPL-2.0-or-later

from setuptools import setup, find_packages

setup(
    name='trackobot',
    version='1.0',
    description='Uploads Hearthstone match results to a Track-o-Bot profile',
    url='https://trackobot.com/',
    packages=find_packages(include=['trackobot', 'trackobot.*']),
    python_requires='>=3.10',
    install_requires=[
        'aiohttp',
        'prometheus_client',
        'PyYAML',
    ],
    extras_require={
        'test': [
            'pytest',
            'pytest-aiohttp',
            'pytest-asyncio',
            'pytest-mock',
        ],
    },
    zip_safe=False,
)
