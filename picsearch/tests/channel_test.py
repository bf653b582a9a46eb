"""
Tests for the local channel and cluster
"""

import queue
import sys
import threading
from os.path import abspath, dirname

import pytest

sys.path.append(dirname(dirname(dirname(abspath(__file__)))))

from picsearch.channel import LocalChannel, LocalCluster, RunAborted, ANY_SOURCE

def make_channels(n):
    inboxes = [queue.Queue() for _ in range(n)]
    event = threading.Event()
    return [LocalChannel(rank, inboxes, event) for rank in range(n)]

def test_fifo_per_sender():
    (c0, c1, c2) = make_channels(3)
    for i in range(5):
        c1.send(('a', i), 0)
    c2.send(('b', 0), 0)
    got = [c0.recv() for _ in range(6)]
    assert [msg for (src, msg) in got if src == 1] == [('a', i) for i in range(5)]
    assert (2, ('b', 0)) in got

def test_recv_from_one_source_keeps_the_others():
    (c0, c1, c2) = make_channels(3)
    c1.send('one', 0)
    c2.send('two', 0)
    c1.send('three', 0)
    assert c0.recv(source=2) == (2, 'two')
    assert c0.recv(source=ANY_SOURCE) == (1, 'one')
    assert c0.recv(source=1) == (1, 'three')

def test_receiver_gets_a_copy():
    (c0, c1) = make_channels(2)
    data = [1, 2, 3]
    c0.send(data, 1)
    data.append(4)
    assert c1.recv() == (0, [1, 2, 3])

def test_send_to_missing_rank():
    (c0, _) = make_channels(2)
    with pytest.raises(ValueError):
        c0.send('x', 5)

def test_abort_wakes_receivers():
    (c0, c1) = make_channels(2)
    errors = []
    def wait():
        try:
            c1.recv()
        except RunAborted as e:
            errors.append(e)
    t = threading.Thread(target=wait)
    t.start()
    c0.abort(3)
    t.join(timeout=5)
    assert not t.is_alive()
    assert len(errors) == 1
    with pytest.raises(RunAborted):
        c0.send('x', 1)

def ring(channel, value):
    """Every rank gets root's value by broadcast, then passes its rank to the next one."""
    v = channel.bcast(value if channel.rank == 0 else None, root=0)
    channel.send(channel.rank, (channel.rank + 1) % channel.size)
    (src, got) = channel.recv()
    return (v, src, got)

@pytest.mark.parametrize("kind", LocalCluster.KINDS)
def test_cluster_run(kind):
    results = LocalCluster(4, kind=kind).run(ring, 'hello')
    assert results == [('hello', 3, 3), ('hello', 0, 0), ('hello', 1, 1), ('hello', 2, 2)]

def fail_at_two(channel):
    if channel.rank == 2:
        raise KeyError("rank two failed")
    channel.recv()          # blocks until the abort

def test_cluster_raises_first_real_error():
    with pytest.raises(KeyError, match="rank two failed"):
        LocalCluster(4).run(fail_at_two)

def exit_at_one(channel):
    if channel.rank == 1:
        sys.exit(3)
    channel.recv()          # blocks until the abort

@pytest.mark.parametrize("kind", LocalCluster.KINDS)
def test_cluster_stops_on_system_exit(kind):
    with pytest.raises(SystemExit) as e:
        LocalCluster(3, kind=kind).run(exit_at_one)
    assert e.value.code == 3

def test_bad_kind():
    with pytest.raises(ValueError):
        LocalCluster(2, kind='fibers')
