"""
Logging setup shared by the boolset command-line tools.

Library modules only ever do logger = logging.getLogger(__name__). Tools call configure_logger()
once, before doing any work.
"""
import atexit
from dataclasses import dataclass, field
import datetime
import logging
from logging.handlers import QueueHandler, QueueListener
import os
import queue
import sys
from typing import List, Optional

from boolset.config import Config


LOG_FORMAT = '%(asctime)s [%(levelname)s] %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S.%f'


@dataclass
class LoggingParams:
    debug: bool = False
    debug_module: List[str] = field(default_factory=list)
    log_file: Optional[str] = None

    @staticmethod
    def create(args) -> 'LoggingParams':
        return LoggingParams(
            debug=bool(args.debug),
            debug_module=args.debug_module,
            log_file=args.log_file,
        )

    @staticmethod
    def add_args(parser, config: Optional[Config]=None):
        """
        Adds the logging options to parser. The default of --log-file comes from the
        boolset.log_file key of config (Config.instance() if not specified).
        """
        config = Config.instance() if config is None else config
        group = parser.add_argument_group('Logging options')
        group.add_argument('--debug', action='store_true', help='enable debug logging')
        group.add_argument('--debug-module', type=str, nargs='+', default=[],
                           help='specific module(s) to enable debug logging for. Example: '
                                '--debug-module boolset.boolean_set boolset.state')
        config.add_parser_argument('boolset.log_file', group, '--log-file',
                                   help='also append log records to this file')


class CustomFormatter(logging.Formatter):
    """
    Python's logging module only supports second-level precision. This class allows for finer
    precision.
    """
    def formatTime(self, record, datefmt):
        return datetime.datetime.fromtimestamp(record.created).strftime(datefmt)


_log_queue = queue.Queue(-1)
_listener: Optional[QueueListener] = None


def _stop_listener():
    global _listener
    if _listener:
        _listener.stop()
        _listener = None


atexit.register(_stop_listener)


def _make_handlers(log_file: Optional[str]) -> List[logging.Handler]:
    """
    ERROR and above goes to stderr, everything else to stdout. If log_file is given, every record
    is also appended there.
    """
    formatter = CustomFormatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setLevel(logging.ERROR)

    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.addFilter(lambda record: record.levelno < logging.ERROR)

    handlers: List[logging.Handler] = [stderr_handler, stdout_handler]
    if log_file:
        directory = os.path.dirname(log_file)
        if directory:
            os.makedirs(directory, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, mode='a'))

    for handler in handlers:
        handler.setFormatter(formatter)
    return handlers


def configure_logger(params: Optional[LoggingParams]=None):
    """
    Configures the root logger at INFO, or at DEBUG if params.debug is set. Modules listed in
    params.debug_module get DEBUG regardless.

    Records are funneled through a QueueHandler/QueueListener pair, so that logging from multiple
    threads cannot deadlock (https://bugs.python.org/issue6721). Calling this a second time
    replaces the previous configuration.
    """
    global _listener
    params = LoggingParams() if params is None else params

    root = logging.getLogger()
    root.setLevel(logging.DEBUG if params.debug else logging.INFO)
    for h in list(root.handlers):
        root.removeHandler(h)
    root.addHandler(QueueHandler(_log_queue))

    for module in params.debug_module:
        logging.getLogger(module).setLevel(logging.DEBUG)

    _stop_listener()
    _listener = QueueListener(_log_queue, *_make_handlers(params.log_file),
                              respect_handler_level=True)
    _listener.start()
