"""
Tests for pictures, objects and match records
"""

import pickle
import sys
from os.path import abspath, dirname

import numpy as np
import pytest

sys.path.append(dirname(dirname(dirname(abspath(__file__)))))

from picsearch.constants import C
from picsearch.picture import Picture, TemplateObject, MatchRecord, Position

def test_picture_is_read_only():
    p = Picture(3, [[1, 2], [3, 4]])
    assert p.size == 2
    assert p.id == 3
    with pytest.raises(ValueError):
        p.pixels[0, 0] = 9

def test_flat_pixels_with_size():
    o = TemplateObject(7, [1, 2, 3, 4, 5, 6, 7, 8, 9], size=3)
    assert o.pixels.shape == (3, 3)
    assert o.pixels[1, 2] == 6

def test_rejects_non_square():
    with pytest.raises(ValueError):
        Picture(1, np.zeros((2, 3)))
    with pytest.raises(ValueError):
        Picture(1, np.zeros((0, 0)))

def test_pickle_makes_fresh_read_only_copy():
    p = Picture(5, np.arange(16).reshape(4, 4))
    p2 = pickle.loads(pickle.dumps(p))
    assert p2 == p
    assert isinstance(p2, Picture)
    assert p2.pixels is not p.pixels
    assert not p2.pixels.flags.writeable

def test_picture_and_object_are_not_equal():
    assert Picture(1, [[1]]) != TemplateObject(1, [[1]])

def test_fits():
    p = Picture(1, np.zeros((5, 5)))
    o = TemplateObject(2, np.zeros((2, 2)))
    assert p.alignments(o) == 4
    assert p.fits(o, (0, 0))
    assert p.fits(o, (3, 3))
    assert not p.fits(o, (4, 0))
    assert not p.fits(o, (0, -1))
    big = TemplateObject(3, np.zeros((6, 6)))
    assert p.alignments(big) == 0
    assert not p.fits(big, (0, 0))

def test_match_record():
    r = MatchRecord()
    assert not r.placed
    assert (r.row, r.column) == (C.NOT_FOUND, C.NOT_FOUND)
    r = MatchRecord(7, 1, 2)
    assert r.placed
    assert r.position == Position(1, 2)
    assert MatchRecord.fromDict(r.dict()) == r
    assert pickle.loads(pickle.dumps(r)) == r
