"""
Tests for synthetic inputs
"""

import sys
from os.path import abspath, dirname

import numpy as np
import pytest

sys.path.append(dirname(dirname(dirname(abspath(__file__)))))

from picsearch.synth import make_search_input

def test_objects_are_planted():
    (si, planted) = make_search_input(num_pictures=3, picture_size=30, num_objects=4, object_size=5, seed=1)
    assert len(si.pictures) == 3
    assert len(si.objects) == 4
    assert len(planted) == 12
    objects = {o.id: o for o in si.objects}
    for ((pid, oid), pos) in planted.items():
        pixels = si.pictures[pid].pixels
        assert np.array_equal(pixels[pos.row:pos.row+5, pos.column:pos.column+5], objects[oid].pixels)

def test_same_seed_same_input():
    (a, pa) = make_search_input(num_pictures=2, picture_size=10, num_objects=2, object_size=2, seed=9)
    (b, pb) = make_search_input(num_pictures=2, picture_size=10, num_objects=2, object_size=2, seed=9)
    assert a.pictures == b.pictures
    assert pa == pb

def test_plants_per_picture():
    (_, planted) = make_search_input(num_pictures=4, picture_size=20, num_objects=5, object_size=2,
                                     plants_per_picture=2)
    assert len(planted) == 8

def test_object_too_big():
    with pytest.raises(ValueError):
        make_search_input(num_pictures=1, picture_size=3, num_objects=1, object_size=4)
