"""
Settings shared by the Webex Teams API client, room resolver and message dispatcher.
"""
import io
from collections import namedtuple

import yaml

from webex_notify.exception import ConfigError

DEFAULT_BASE_URL = "https://webexapis.com/v1"

# Keys accepted in a YAML config file.
CONFIG_FILE_KEYS = ('token', 'proxy', 'base_url', 'team', 'room')


class NotifyConfig(namedtuple('_NotifyConfig', ['token', 'proxy', 'base_url'])):
    """
    Immutable connection settings, built once at startup and handed to each component.
    """
    __slots__ = ()

    def __new__(cls, token, proxy=None, base_url=DEFAULT_BASE_URL):
        if not token:
            raise ConfigError("missing Webex Teams API token (flag -T)")
        return super().__new__(cls, token, proxy or None, (base_url or DEFAULT_BASE_URL).rstrip('/'))

    def __repr__(self):
        # Keep the bearer token out of logs and tracebacks.
        return f"NotifyConfig(token='***', proxy={self.proxy!r}, base_url={self.base_url!r})"


def load_config_file(config_file):
    """
    Read settings from a YAML file.

    Arguments:
        config_file (str): Path of the YAML file.

    Returns:
        dict: Only the recognised keys (see CONFIG_FILE_KEYS).

    Raises:
        ConfigError: if the file cannot be read or does not hold a mapping.
    """
    try:
        with io.open(config_file, 'r') as stream:
            values = yaml.safe_load(stream)
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigError(f"Failed to read config file {config_file}: {exc}") from exc

    if values is None:
        return {}
    if not isinstance(values, dict):
        raise ConfigError(f"Config file {config_file} must contain a mapping")

    unknown = sorted(set(values) - set(CONFIG_FILE_KEYS))
    if unknown:
        raise ConfigError("Unknown keys in config file {}: {}".format(config_file, ', '.join(unknown)))
    return values
