"""
Helpers for the raw state object backing a BooleanSet.

The state is a plain dict of the form:

{'inverted': False, 'ranges': [{'start': 10, 'end': 20}, {'start': 30, 'end': UNBOUNDED}]}

In memory, an unbounded end is represented by UNBOUNDED (math.inf), which compares exactly
against any python int. On disk, it is represented by the string '+inf'.
"""
import json
import logging
import math
import os
from typing import Any, Dict, List, Union

from boolset.errors import ValidationError
from boolset.py_util import atomic_write_text


logger = logging.getLogger(__name__)

UNBOUNDED = math.inf
UNBOUNDED_JSON = '+inf'

Bound = Union[int, float]  # float only ever means UNBOUNDED
RangeDict = Dict[str, Bound]
BooleanSetState = Dict[str, Any]


def new_state(inverted: bool=False) -> BooleanSetState:
    return {'inverted': inverted, 'ranges': []}


def is_index(value) -> bool:
    """
    Returns True iff value is a non-negative python int. bools are rejected even though they are
    technically ints.
    """
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def validate_state(state: BooleanSetState):
    """
    Raises a ValidationError if state does not satisfy all of the following:

    1. state is a dict with a bool 'inverted' entry and a list 'ranges' entry
    2. each range is a dict with non-negative int 'start' and 'end' entries, except that the
       'end' of the final range may be UNBOUNDED
    3. start < end for each range
    4. the ranges are sorted, and there is a gap of at least 1 between consecutive ranges
    """
    if not isinstance(state, dict):
        raise ValidationError(f'state must be a dict, got {type(state).__name__}')

    inverted = state.get('inverted', None)
    if not isinstance(inverted, bool):
        raise ValidationError(f'state["inverted"] must be a bool, got {inverted!r}')

    ranges = state.get('ranges', None)
    if not isinstance(ranges, list):
        raise ValidationError(f'state["ranges"] must be a list, got {ranges!r}')

    n = len(ranges)
    prev_end = None
    for i, r in enumerate(ranges):
        if not isinstance(r, dict) or 'start' not in r or 'end' not in r:
            raise ValidationError(f'ranges[{i}] must be a dict with start and end: {r!r}')

        start = r['start']
        end = r['end']
        if not is_index(start):
            raise ValidationError(f'ranges[{i}] has invalid start: {start!r}')
        if end == UNBOUNDED:
            if i != n - 1:
                raise ValidationError(f'ranges[{i}] is unbounded but is not the last range')
        elif not is_index(end):
            raise ValidationError(f'ranges[{i}] has invalid end: {end!r}')
        if start >= end:
            raise ValidationError(f'ranges[{i}] is empty or reversed: [{start}, {end})')
        if prev_end is not None and start <= prev_end:
            raise ValidationError(
                f'ranges[{i}] starts at {start}, which overlaps or touches the previous range '
                f'ending at {prev_end}')
        prev_end = end


def adopt_state(state: BooleanSetState) -> BooleanSetState:
    """
    Validates state for adoption by reference. The final range may carry the on-disk
    UNBOUNDED_JSON end, in which case it is rewritten in place to UNBOUNDED. If validation fails,
    state is left exactly as it was passed in.
    """
    last = None
    ranges = state.get('ranges', None) if isinstance(state, dict) else None
    if isinstance(ranges, list) and ranges:
        if isinstance(ranges[-1], dict) and ranges[-1].get('end', None) == UNBOUNDED_JSON:
            last = ranges[-1]

    if last is not None:
        last['end'] = UNBOUNDED
    try:
        validate_state(state)
    except ValidationError:
        if last is not None:
            last['end'] = UNBOUNDED_JSON
        raise
    return state


def to_json_dict(state: BooleanSetState) -> Dict[str, Any]:
    """
    Returns a json-serializable copy of state.
    """
    ranges: List[Dict[str, Any]] = []
    for r in state['ranges']:
        end = UNBOUNDED_JSON if r['end'] == UNBOUNDED else r['end']
        ranges.append({'start': r['start'], 'end': end})
    return {'inverted': state['inverted'], 'ranges': ranges}


def from_json_dict(data: Dict[str, Any]) -> BooleanSetState:
    """
    Inverse of to_json_dict(). Raises a ValidationError if the resultant state is invalid.
    """
    if not isinstance(data, dict):
        raise ValidationError(f'state must be a dict, got {type(data).__name__}')

    state = dict(data)
    ranges = data.get('ranges', None)
    if isinstance(ranges, list):
        converted = []
        for r in ranges:
            if isinstance(r, dict) and r.get('end', None) == UNBOUNDED_JSON:
                r = dict(r, end=UNBOUNDED)
            converted.append(r)
        state['ranges'] = converted

    validate_state(state)
    return state


def save_state(state: BooleanSetState, filename: str):
    """
    Writes state to filename as json. The write is atomic.
    """
    validate_state(state)
    directory = os.path.dirname(filename)
    if directory:
        os.makedirs(directory, exist_ok=True)
    atomic_write_text(json.dumps(to_json_dict(state)), filename)
    logger.info('Saved state with %d range(s) to %s', len(state['ranges']), filename)


def load_state(filename: str) -> BooleanSetState:
    with open(filename, 'r', encoding='utf-8') as f:
        try:
            data = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise ValidationError(f'{filename} does not contain valid json: {e}') from e

    state = from_json_dict(data)
    logger.info('Loaded state with %d range(s) from %s', len(state['ranges']), filename)
    return state
