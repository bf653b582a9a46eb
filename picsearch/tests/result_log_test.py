"""
Tests for the ResultLog
"""

import pickle
import sys
import threading
from os.path import abspath, dirname

import pytest

sys.path.append(dirname(dirname(dirname(abspath(__file__)))))

from picsearch.picture import MatchRecord
from picsearch.result_log import ResultLog, MatchFailure

def test_presized_with_sentinels():
    log = ResultLog(4, 3)
    assert len(log.records) == 3
    assert all(not r.placed for r in log.records)
    assert log.found_count == 0
    assert log.found == []

def test_append_in_order():
    log = ResultLog(4, 3)
    log.append(MatchRecord(9, 0, 1))
    log.append(MatchRecord(2, 3, 3))
    assert log.found_count == 2
    assert log.object_ids == [9, 2]
    assert not log.records[2].placed

def test_overflow_and_duplicates():
    log = ResultLog(1, 1)
    log.append(MatchRecord(1, 0, 0))
    with pytest.raises(OverflowError):
        log.append(MatchRecord(2, 0, 0))

    log = ResultLog(1, 3)
    log.append(MatchRecord(1, 0, 0))
    with pytest.raises(ValueError):
        log.append(MatchRecord(1, 2, 2))
    assert log.found_count == 1

def test_concurrent_appends_get_distinct_slots():
    n = 200
    log = ResultLog(1, n)
    barrier = threading.Barrier(8)
    def add(start):
        barrier.wait()
        for i in range(start, n, 8):
            log.append(MatchRecord(i, 0, 0))
    threads = [threading.Thread(target=add, args=(s,)) for s in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert log.found_count == n
    assert sorted(log.object_ids) == list(range(n))

def test_pickle_sends_filled_slots():
    log = ResultLog(8, 5)
    log.append(MatchRecord(3, 1, 1))
    log.add_failure(MatchFailure(4, "boom"))
    state = log.__getstate__()
    assert len(state['found']) == 1
    log2 = pickle.loads(pickle.dumps(log))
    assert log2 == log
    assert log2.capacity == 5
    assert len(log2.records) == 5
    log2.append(MatchRecord(5, 0, 0))   # the lock came back
    assert log2.found_count == 2

def test_json():
    log = ResultLog(8, 2)
    log.append(MatchRecord(3, 1, 2))
    log.add_failure(MatchFailure(4, "boom"))
    assert ResultLog.fromJSON(log.json) == log
    assert log.dict()['found'] == [{'object_id': 3, 'row': 1, 'column': 2}]
