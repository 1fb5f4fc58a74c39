#!/usr/bin/env python3
"""
Command-line access to a BooleanSet stored in a json snapshot file.

Examples:

boolset_tool.py -f scanned.json init
boolset_tool.py -f scanned.json set true 0 1500
boolset_tool.py -f scanned.json first false 0 2000   # prints 1500
boolset_tool.py -f scanned.json flip 100
boolset_tool.py -f scanned.json show

Wherever END is accepted, "inf" means unbounded.
"""
import argparse
import logging
import os
import sys
from typing import List, Optional

from termcolor import colored

from boolset.boolean_set import BooleanSet
from boolset.config import Config
from boolset.errors import BooleanSetException
from boolset.logging_util import LoggingParams, configure_logger
from boolset.py_util import CustomHelpFormatter
from boolset.state import UNBOUNDED, load_state, save_state


logger = logging.getLogger(__name__)

TRUE_STRS = ('true', 't', '1', 'yes', 'y')
FALSE_STRS = ('false', 'f', '0', 'no', 'n')
UNBOUNDED_STRS = ('inf', '+inf')

# marks an omitted END, meaning "just the single index START"
SINGLE_INDEX = object()


def parse_bool(s: str) -> bool:
    if s.lower() in TRUE_STRS:
        return True
    if s.lower() in FALSE_STRS:
        return False
    raise argparse.ArgumentTypeError(f'invalid bool: {s!r}')


def parse_end(s: str) -> Optional[int]:
    if s.lower() in UNBOUNDED_STRS:
        return None
    try:
        return int(s)
    except ValueError:
        raise argparse.ArgumentTypeError(f'invalid end: {s!r}')


def format_value(value: bool) -> str:
    return colored(str(value).lower(), 'green' if value else 'red')


def format_index(index) -> str:
    if index is None:
        return 'none'
    if index == UNBOUNDED:
        return '+inf'
    return str(index)


def load_args(argv: Optional[List[str]]=None):
    parser = argparse.ArgumentParser(formatter_class=CustomHelpFormatter,
                                     description='Inspect and modify a BooleanSet snapshot.')
    Config.instance().add_parser_argument('boolset.snapshot', parser, '-f', '--snapshot',
                                          help='path of the json snapshot file')
    LoggingParams.add_args(parser)

    subparsers = parser.add_subparsers(dest='cmd', required=True)

    def add_cmd(name, help):
        return subparsers.add_parser(name, help=help, formatter_class=CustomHelpFormatter)

    cmd = add_cmd('init', 'create (or overwrite) the snapshot with every value equal to VALUE')
    cmd.add_argument('value', type=parse_bool, nargs='?', default=False)

    add_cmd('show', 'print the ranges of the snapshot')

    cmd = add_cmd('set', 'set [START, END) to VALUE, or just START if END is omitted')
    cmd.add_argument('value', type=parse_bool)
    cmd.add_argument('start', type=int)
    cmd.add_argument('end', type=parse_end, nargs='?', default=SINGLE_INDEX)

    cmd = add_cmd('flip', 'flip [START, END), or just START if END is omitted, or everything if '
                  'START is omitted')
    cmd.add_argument('start', type=int, nargs='?', default=None)
    cmd.add_argument('end', type=parse_end, nargs='?', default=SINGLE_INDEX)

    cmd = add_cmd('get', 'print the value at IDX')
    cmd.add_argument('idx', type=int)

    for name, help in (('first', 'print the first index in [START, END) equal to VALUE'),
                       ('last', 'print the last index in [START, END) equal to VALUE'),
                       ('all', 'print whether every value in [START, END) equals VALUE'),
                       ('any', 'print whether any value in [START, END) equals VALUE')):
        cmd = add_cmd(name, help)
        cmd.add_argument('value', type=parse_bool)
        cmd.add_argument('start', type=int, nargs='?', default=0)
        cmd.add_argument('end', type=parse_end, nargs='?', default=None)

    cmd = add_cmd('array', 'print the values in [START, END) as a string of 0s and 1s')
    cmd.add_argument('start', type=int)
    cmd.add_argument('end', type=int)

    return parser.parse_args(argv)


def run_cmd(args, bset: BooleanSet) -> bool:
    """
    Runs args.cmd against bset. Returns True iff bset was modified.
    """
    cmd = args.cmd
    if cmd == 'show':
        state = bset.get_state()
        print(f'{len(state["ranges"])} stored range(s), inverted={state["inverted"]}')
        print(bset.to_string('\n'))
        return False

    if cmd == 'set':
        if args.end is SINGLE_INDEX:
            bset.set(args.value, args.start)
        else:
            bset.set_range(args.value, args.start, args.end)
        return True

    if cmd == 'flip':
        if args.start is None:
            bset.flip()
        elif args.end is SINGLE_INDEX:
            bset.flip(args.start)
        else:
            bset.flip_range(args.start, args.end)
        return True

    if cmd == 'get':
        print(format_value(bset.get(args.idx)))
    elif cmd == 'first':
        print(format_index(bset.get_first(args.value, args.start, args.end)))
    elif cmd == 'last':
        print(format_index(bset.get_last(args.value, args.start, args.end)))
    elif cmd == 'all':
        print(format_value(bset.all_set(args.value, args.start, args.end)))
    elif cmd == 'any':
        print(format_value(bset.any_set(args.value, args.start, args.end)))
    elif cmd == 'array':
        print(''.join('1' if b else '0' for b in bset.to_array(args.start, args.end)))
    else:
        raise Exception(f'Unknown cmd: {cmd}')
    return False


def main(argv: Optional[List[str]]=None):
    args = load_args(argv)
    configure_logger(params=LoggingParams.create(args))

    snapshot = args.snapshot
    if not snapshot:
        logger.error('No snapshot specified. Pass -f/--snapshot, or set boolset.snapshot in %s',
                     Config.instance().filename)
        sys.exit(1)

    try:
        if args.cmd == 'init':
            bset = BooleanSet().set(args.value)
            save_state(bset.get_state(), snapshot)
            return

        if not os.path.isfile(snapshot):
            logger.error('Snapshot %s does not exist. Create it with the init cmd.', snapshot)
            sys.exit(1)

        bset = BooleanSet(load_state(snapshot))
        if run_cmd(args, bset):
            save_state(bset.get_state(), snapshot)
    except BooleanSetException as e:
        logger.error('%s: %s', type(e).__name__, e)
        sys.exit(1)


if __name__ == '__main__':
    main()
