"""Setup for webex_notify"""
import re
from os import path

from setuptools import find_packages, setup


def get_version():
    """
    Read the version from the package without importing it.
    """
    init_file = path.join(path.dirname(path.abspath(__file__)), 'webex_notify', '__init__.py')
    with open(init_file) as stream:
        return re.search(r"^__version__ = '([^']+)'", stream.read(), re.MULTILINE).group(1)


setup(
    name='webex_notify',
    version=get_version(),
    description='Post messages, files and cards to Webex Teams rooms from the command line.',
    packages=find_packages(exclude=['webex_notify.tests']),
    python_requires=">=3.8",
    install_requires=[
        'click>=7.0',
        'click-log',
        'PyYAML',
        'requests[socks]',
    ],
    extras_require={
        'test': [
            'ddt',
            'pytest',
            'responses',
        ],
    },
    entry_points={
        'console_scripts': [
            'notify_by_webex_teams = webex_notify.scripts.notify_by_webex_teams:notify_by_webex_teams',
        ],
    },
)
