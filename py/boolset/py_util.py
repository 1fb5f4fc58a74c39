import argparse
import os


def make_hidden_filename(filename):
    """
    Returns a filename formed by prepending a '.' to the filename part of filename.
    """
    head, tail = os.path.split(filename)
    return os.path.join(head, '.' + tail)


def atomic_write_text(text: str, dst, intermediate=None):
    """
    Writes text to dst, atomically.

    It works by first writing to a temporary file, then renaming the temporary file to dst. This
    works because the unix cmd "mv" is atomic (as long as the files are in the same filesystem).

    The location of the temporary file is specified by intermediate. If intermediate is None, then
    the location is created by prepending a '.' to the filename part of dst. It is the
    responsibility of the caller to ensure that nothing else is writing to intermediate.
    """
    if intermediate is None:
        intermediate = make_hidden_filename(dst)

    with open(intermediate, 'w') as f:
        f.write(text)
    os.replace(intermediate, dst)


class CustomHelpFormatter(argparse.HelpFormatter):
    """
    Default format:

        -f SNAPSHOT, --snapshot SNAPSHOT     path of the snapshot file

    Custom format:
        -f/--snapshot SNAPSHOT               path of the snapshot file
    """
    def _format_action_invocation(self, action):
        if action.option_strings and action.nargs != 0:
            return '/'.join(action.option_strings) + ' ' + self._format_args(action, action.dest.upper())
        elif action.option_strings:
            return '/'.join(action.option_strings)
        else:
            return super()._format_action_invocation(action)
