"""
ResultLog - the per-picture record of found object placements.

An entry is pre-sized to the number of template objects. Slots are filled in
the order the searches complete. Filling a slot and counting it happen
together under the entry's lock.
"""

import json
import threading

from .picture import MatchRecord


class MatchFailure:
    """An object whose search could not be completed. Treated as not found."""
    __slots__ = ('object_id', 'error')

    def __init__(self, object_id, error):
        self.object_id = object_id
        self.error = error

    def __eq__(self, b):
        return isinstance(b, MatchFailure) and (self.object_id, self.error) == (b.object_id, b.error)

    def __repr__(self):
        return f"<MatchFailure object={self.object_id} error={self.error!r}>"

    def __getstate__(self):
        return (self.object_id, self.error)

    def __setstate__(self, state):
        (self.object_id, self.error) = state

    def dict(self):
        return {'object_id': self.object_id, 'error': self.error}


class ResultLog:
    """Findings for one picture."""
    LOG_VERSION = 1

    def __init__(self, picture_id, capacity):
        if capacity < 0:
            raise ValueError(f"capacity must be >= 0, not {capacity}")
        self.picture_id = picture_id
        self.capacity = capacity
        self.records = [MatchRecord() for _ in range(capacity)]
        self.found_count = 0
        self.failures = []
        self._lock = threading.Lock()
        self._object_ids = set()

    def append(self, record:MatchRecord):
        """Place record in the next free slot. Safe to call from several threads."""
        with self._lock:
            if self.found_count >= self.capacity:
                raise OverflowError(f"picture {self.picture_id}: all {self.capacity} slots are filled")
            if record.object_id in self._object_ids:
                raise ValueError(f"picture {self.picture_id}: object {record.object_id} already placed")
            self.records[self.found_count] = record
            self._object_ids.add(record.object_id)
            self.found_count += 1

    def add_failure(self, failure:MatchFailure):
        with self._lock:
            self.failures.append(failure)

    @property
    def found(self):
        """The filled slots, in the order they were appended."""
        return self.records[:self.found_count]

    @property
    def object_ids(self):
        return [r.object_id for r in self.found]

    def __len__(self):
        return self.found_count

    def __eq__(self, b):
        return (isinstance(b, ResultLog)
                and self.picture_id == b.picture_id
                and self.found == b.found
                and self.failures == b.failures)

    def __repr__(self):
        return f"<ResultLog picture={self.picture_id} found={self.found_count}/{self.capacity}>"

    # Only the filled slots go over the wire. The receiver re-pads to capacity.
    def __getstate__(self):
        return {'picture_id': self.picture_id,
                'capacity': self.capacity,
                'found': self.found,
                'failures': self.failures}

    def __setstate__(self, state):
        self.__init__(state['picture_id'], state['capacity'])
        for record in state['found']:
            self.append(record)
        self.failures = list(state['failures'])

    def dict(self):
        return {'version': self.LOG_VERSION,
                'picture_id': self.picture_id,
                'capacity': self.capacity,
                'found': [r.dict() for r in self.found],
                'failures': [f.dict() for f in self.failures]}

    @property
    def json(self):
        return json.dumps(self.dict())

    @classmethod
    def fromDict(cls, d):
        if d['version'] != cls.LOG_VERSION:
            raise ValueError(f"Cannot load ResultLog version {d['version']}")
        log = cls(d['picture_id'], d['capacity'])
        for r in d['found']:
            log.append(MatchRecord.fromDict(r))
        log.failures = [MatchFailure(f['object_id'], f['error']) for f in d['failures']]
        return log

    @classmethod
    def fromJSON(cls, s):
        return cls.fromDict(json.loads(s))

