import bisect
import copy
import logging
from operator import itemgetter
from typing import Iterator, Optional, Tuple

import numpy as np

from boolset.errors import DomainError
from boolset.state import (
    UNBOUNDED, Bound, BooleanSetState, adopt_state, is_index, new_state, validate_state,
)


logger = logging.getLogger(__name__)

_range_start = itemgetter('start')
_range_end = itemgetter('end')

# default end of to_array(), meaning "same as start"
_END_AT_START = object()


class BooleanSet:
    """
    Represents an infinite array of booleans B: B[0], B[1], B[2], ...

    Consecutive equal values are compressed into ranges, so that the memory usage is proportional
    to the number of value changes, not to the indices involved. For example:

    S = BooleanSet()         # all False
    S.set_range(True, 10, 20)
    S.set_range(True, 1000000, None)
    S.get_first(False, 10)   # 20

    stores exactly two ranges, [10, 20) and [1000000, inf).

    The underlying state is a dict (see boolset.state) consisting of:

    - ranges: sorted, disjoint, non-touching half-open ranges [start, end)
    - inverted: if False, the indices in ranges are True and all others are False. If True, the
      indices in ranges are False and all others are True.

    We refer to an index inside a range as "present". The value of an index is always
    (present != inverted). Flipping the entire array is thus just a matter of toggling inverted.

    Wherever an end is accepted, None (or UNBOUNDED) means +inf. to_array() accepts only finite
    ends.

    This class is not thread-safe.
    """
    def __init__(self, state_or_obj=None):
        """
        If state_or_obj is a BooleanSet, deep-copies its state.

        If state_or_obj is a state dict, adopts it by reference after validating it. Raises a
        ValidationError if the state is invalid.

        Otherwise, starts with all values False.
        """
        if isinstance(state_or_obj, BooleanSet):
            self._set_state(copy.deepcopy(state_or_obj.get_state()))
        elif state_or_obj is not None:
            self._set_state(state_or_obj)
        else:
            self.state = new_state()

    @classmethod
    def from_bits(cls, bits) -> 'BooleanSet':
        """
        Returns a BooleanSet whose values in [0, len(bits)) match bits. All values beyond that are
        False.
        """
        bits = np.asarray(bits, dtype=bool).ravel()
        padded = np.concatenate(([0], bits.astype(np.int8), [0]))
        edges = np.flatnonzero(np.diff(padded))
        ranges = [{'start': int(a), 'end': int(b)} for a, b in zip(edges[::2], edges[1::2])]
        return cls({'inverted': False, 'ranges': ranges})

    def get_state(self) -> BooleanSetState:
        """
        Returns the live internal state. Callers must not mutate it directly.
        """
        return self.state

    def check_invariants(self):
        validate_state(self.state)

    def clear(self) -> 'BooleanSet':
        return self.set(False)

    def copy(self) -> 'BooleanSet':
        return BooleanSet(self)

    def set(self, value: bool, idx: Optional[int]=None) -> 'BooleanSet':
        """
        Sets B[idx] = value. If idx is None, sets every value in B.
        """
        if idx is None:
            logger.debug('Setting all values to %s, discarding %d range(s)', value,
                         len(self.state['ranges']))
            self.state['inverted'] = bool(value)
            self.state['ranges'].clear()
            return self

        idx = _check_index(idx)
        return self.set_range(value, idx, idx + 1)

    def set_range(self, value: bool, start: int=0, end: Bound=None) -> 'BooleanSet':
        """
        Performs B[start:end] = value
        """
        start, end = _check_range(start, end)
        if start == end:
            return self
        if start == 0 and end == UNBOUNDED:
            return self.set(value)

        self._apply(self._to_raw(value), start, end)
        return self

    def flip(self, idx: Optional[int]=None) -> 'BooleanSet':
        """
        Performs B[idx] = not B[idx]. If idx is None, flips every value in B in O(1).
        """
        if idx is None:
            self.state['inverted'] = not self.state['inverted']
            return self

        idx = _check_index(idx)
        return self.flip_range(idx, idx + 1)

    def flip_range(self, start: int=0, end: Bound=None) -> 'BooleanSet':
        """
        Performs B[i] = not B[i] for all i in [start, end).
        """
        start, end = _check_range(start, end)
        if start == end:
            return self
        if start == 0 and end == UNBOUNDED:
            return self.flip()

        # the absent sub-ranges become present, and vice versa
        absent_value = self._to_value(False)
        absent = [(s, e) for s, e, v in self._segments(start, end) if v == absent_value]
        self._apply(False, start, end)
        for s, e in absent:
            self._apply(True, s, e)
        return self

    def get(self, idx: int) -> bool:
        idx = _check_index(idx)
        ranges = self.state['ranges']
        i = bisect.bisect_right(ranges, idx, key=_range_start) - 1
        present = i >= 0 and idx < ranges[i]['end']
        return self._to_value(present)

    def get_first(self, value: bool, start: int=0, end: Bound=None) -> Optional[int]:
        """
        Returns the smallest i in [start, end) with B[i] == value, or None if there is no such i.
        """
        start, end = _check_range(start, end)
        for s, _, v in self._segments(start, end):
            if v == value:
                return s
        return None

    def get_last(self, value: bool, start: int=0, end: Bound=None) -> Optional[Bound]:
        """
        Returns the largest i in [start, end) with B[i] == value, or None if there is no such i.

        If end is unbounded and B[i] == value for all sufficiently large i, there is no largest
        such i, and UNBOUNDED is returned.
        """
        start, end = _check_range(start, end)
        for _, e, v in self._segments_reversed(start, end):
            if v == value:
                return UNBOUNDED if e == UNBOUNDED else e - 1
        return None

    def all_set(self, value: bool, start: int=0, end: Bound=None) -> bool:
        """
        Returns True iff B[i] == value for all i in [start, end). Vacuously True if start == end.
        """
        return self.get_first(not value, start, end) is None

    def any_set(self, value: bool, start: int=0, end: Bound=None) -> bool:
        return self.get_first(value, start, end) is not None

    def iter_ranges(self, value: bool=True, start: int=0,
                    end: Bound=None) -> Iterator[Tuple[int, Bound]]:
        """
        Yields the maximal ranges (a, b), clipped to [start, end), for which B[a:b] == value.
        """
        start, end = _check_range(start, end)
        for s, e, v in self._segments(start, end):
            if v == value:
                yield s, e

    def to_array(self, start: int=0, end=_END_AT_START) -> np.ndarray:
        """
        Returns B[start:end] as a numpy bool array. If end is omitted, it defaults to start,
        resulting in an empty array.

        Raises a DomainError if end is None, UNBOUNDED, or less than start.
        """
        start = _check_index(start)
        if end is _END_AT_START:
            end = start
        if end is None or end == UNBOUNDED:
            raise DomainError('to_array() requires a finite end')
        end = _check_index(end)
        if end < start:
            raise DomainError(f'Invalid range [{start}, {end}): start > end')

        arr = np.empty(end - start, dtype=bool)
        for s, e, v in self._segments(start, end):
            arr[s - start:e - start] = v
        return arr

    def to_string(self, delim: str) -> str:
        tokens = []
        for s, e, v in self._segments(0, UNBOUNDED):
            tokens.append('[%d, %s): %s' % (s, 'inf' if e == UNBOUNDED else e, v))
        return delim.join(tokens)

    def __getitem__(self, idx: int) -> bool:
        return self.get(idx)

    def __contains__(self, idx: int) -> bool:
        return self.get(idx)

    def __eq__(self, other):
        if not isinstance(other, BooleanSet):
            return NotImplemented
        return list(self.iter_ranges(True)) == list(other.iter_ranges(True))

    def __str__(self):
        return 'BooleanSet(%s)' % self.to_string(delim=', ')

    def __repr__(self):
        return f'BooleanSet({self.state!r})'

    def _set_state(self, state: BooleanSetState):
        adopt_state(state)
        self.state = state
        logger.debug('Adopted state with %d range(s), inverted=%s', len(state['ranges']),
                     state['inverted'])

    def _to_raw(self, value: bool) -> bool:
        """
        Maps a value to the present/absent status that represents it.
        """
        return bool(value) != self.state['inverted']

    def _to_value(self, present: bool) -> bool:
        return bool(present) != self.state['inverted']

    def _apply(self, present: bool, start: int, end: Bound):
        """
        Marks every index in [start, end) as present or absent, splitting, truncating, and merging
        ranges as needed so that the invariants of validate_state() continue to hold.

        Assumes start < end.
        """
        ranges = self.state['ranges']
        if present:
            # ranges in [lo, hi) overlap or touch [start, end), and get merged with it
            lo = bisect.bisect_left(ranges, start, key=_range_end)
            hi = bisect.bisect_right(ranges, end, lo=lo, key=_range_start)
            if lo < hi:
                start = min(start, ranges[lo]['start'])
                end = max(end, ranges[hi - 1]['end'])
            ranges[lo:hi] = [{'start': start, 'end': end}]
        else:
            # ranges in [lo, hi) overlap [start, end), and only their parts outside it survive
            lo = bisect.bisect_right(ranges, start, key=_range_end)
            hi = bisect.bisect_left(ranges, end, lo=lo, key=_range_start)
            survivors = []
            if lo < hi:
                first = ranges[lo]
                last = ranges[hi - 1]
                if first['start'] < start:
                    survivors.append({'start': first['start'], 'end': start})
                if last['end'] > end:
                    survivors.append({'start': end, 'end': last['end']})
            ranges[lo:hi] = survivors

    def _segments(self, start: int, end: Bound) -> Iterator[Tuple[int, Bound, bool]]:
        """
        Partitions [start, end) into maximal segments of constant value, and yields a
        (seg_start, seg_end, value) tuple for each, in increasing order.
        """
        ranges = self.state['ranges']
        n = len(ranges)
        i = bisect.bisect_right(ranges, start, key=_range_end)
        pos = start
        while pos < end:
            if i < n and ranges[i]['start'] <= pos:
                seg_end = min(ranges[i]['end'], end)
                yield pos, seg_end, self._to_value(True)
                i += 1
            else:
                next_start = ranges[i]['start'] if i < n else UNBOUNDED
                seg_end = min(next_start, end)
                yield pos, seg_end, self._to_value(False)
            pos = seg_end

    def _segments_reversed(self, start: int, end: Bound) -> Iterator[Tuple[int, Bound, bool]]:
        """
        Like _segments(), but in decreasing order.
        """
        ranges = self.state['ranges']
        j = bisect.bisect_left(ranges, end, key=_range_start) - 1
        pos = end
        while pos > start:
            if j >= 0 and ranges[j]['end'] >= pos:
                seg_start = max(ranges[j]['start'], start)
                yield seg_start, pos, self._to_value(True)
                j -= 1
            else:
                prev_end = ranges[j]['end'] if j >= 0 else 0
                seg_start = max(prev_end, start)
                yield seg_start, pos, self._to_value(False)
            pos = seg_start


def _check_index(idx) -> int:
    if isinstance(idx, np.integer):
        idx = int(idx)
    if not is_index(idx):
        raise DomainError(f'Invalid index: {idx!r}')
    return idx


def _check_range(start, end) -> Tuple[int, Bound]:
    start = _check_index(start)
    if end is None or end == UNBOUNDED:
        end = UNBOUNDED
    else:
        end = _check_index(end)
    if start > end:
        raise DomainError(f'Invalid range [{start}, {end}): start > end')
    return start, end
