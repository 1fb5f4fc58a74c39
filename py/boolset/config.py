"""
Users can maintain a config.txt file to store arbitrary key-value pairs, in the following format:

----------------------------------
# config.txt example
boolset.snapshot = /data/scanned_heights.json
key2=  value2  # some comment
----------------------------------

The file is looked up at $BOOLSET_CONFIG if that environment variable is set, and in the current
working directory otherwise.

The Config class defined here provides an API to access those key-value pairs.
"""
import argparse
import os
from typing import Dict, Optional

from boolset.errors import ConfigError


ENV_VAR = 'BOOLSET_CONFIG'
DEFAULT_BASENAME = 'config.txt'


def default_filename() -> str:
    return os.environ.get(ENV_VAR, os.path.join(os.getcwd(), DEFAULT_BASENAME))


def decomment(line: str) -> str:
    """
    Strips pound-comments.
    """
    pound = line.find('#')
    if pound != -1:
        return line[:pound]
    return line


class Config:
    _instance = None

    def __init__(self, filename: Optional[str]=None):
        self.filename = default_filename() if filename is None else filename
        self._dict: Dict[str, str] = {}
        if not os.path.isfile(self.filename):
            return

        with open(self.filename, 'r') as f:
            for lineno, orig_line in enumerate(f, start=1):
                line = decomment(orig_line).strip()
                if not line:
                    continue
                key, eq, value = line.partition('=')
                key = key.strip()
                if not eq or not key:
                    raise ConfigError(f'{self.filename}:{lineno}: expected key = value, got '
                                      f'{orig_line.rstrip()!r}')
                if key in self._dict:
                    raise ConfigError(f'{self.filename}:{lineno}: duplicate key {key!r}')
                self._dict[key] = value.strip()

    def get(self, key: str, default_value=None):
        return self._dict.get(key, default_value)

    def add_parser_argument(self, key: str, parser: argparse.ArgumentParser, *args, **kwargs):
        """
        Invokes parser.add_argument(*args, **kwargs), after first...

        - Adding default=self.get(key) to kwargs
        - Appending to kwargs['help'] info about the default value and where it came from
        """
        assert 'default' not in kwargs
        assert 'help' in kwargs
        kwargs = dict(**kwargs)
        help = kwargs['help']
        value = self._dict.get(key, None)
        if value is not None:
            kwargs['default'] = value
            kwargs['help'] = f'{help} (default: {value} [{self.filename}:{key}])'
        else:
            kwargs['help'] = f'{help} [{self.filename}:{key}]'

        parser.add_argument(*args, **kwargs)

    @staticmethod
    def instance() -> 'Config':
        if Config._instance is None:
            Config._instance = Config()
        return Config._instance
