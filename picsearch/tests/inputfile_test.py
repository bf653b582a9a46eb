"""
Tests for reading and writing input files
"""

import sys
from os.path import abspath, dirname

import numpy as np
import pytest

sys.path.append(dirname(dirname(dirname(abspath(__file__)))))

from picsearch.inputfile import (parse_input, read_input, write_input, format_input,
                                 InputFormatError, SearchInput)
from picsearch.picture import Picture, TemplateObject

SAMPLE = """0.1
2
1
3
1 2 3
4 5 6
7 8 9
2
2
1 1
1 1
1
9
2
5 6
8 9
"""

def test_parse():
    si = parse_input(SAMPLE)
    assert si.threshold == 0.1
    assert [p.id for p in si.pictures] == [1, 2]
    assert si.pictures[0].size == 3
    assert si.pictures[0].pixels[2, 0] == 7
    assert len(si.objects) == 1
    assert si.objects[0].id == 9
    assert si.objects[0].pixels.tolist() == [[5, 6], [8, 9]]

@pytest.mark.parametrize("text,field", [
    ("", "matching threshold"),
    ("abc", "matching threshold"),
    ("0.1", "number of pictures"),
    ("0.1 1 7", "picture dimension"),
    ("0.1 1 7 2 1 2 3", "color of picture 7"),
    ("0.1 1 7 2 1 2 x 4", "color of picture 7"),
    ("0.1 1 7 0", "picture dimension"),
    ("0.1 0", "number of objects"),
    ("0.1 0 1 4 2 5", "color of object 4"),
    ("0.1 -1", "number of pictures"),
    ("0.1 1 7 1 3000000000", "color of picture 7"),
    ("0.1 0 1 4 1 -2147483649", "color of object 4"),
])
def test_malformed(text, field):
    with pytest.raises(InputFormatError, match=f"Error reading {field}"):
        parse_input(text)

def test_missing_file(tmp_path):
    with pytest.raises(InputFormatError):
        read_input(tmp_path / "nothing.txt")

def test_write_then_read(tmp_path):
    si = SearchInput(0.25,
                     [Picture(3, np.arange(9).reshape(3, 3)), Picture(4, [[7]])],
                     [TemplateObject(8, [[1, 2], [3, 4]])])
    path = tmp_path / "in" / "input.txt"
    write_input(path, si)
    si2 = read_input(path)
    assert si2.threshold == 0.25
    assert si2.pictures == si.pictures
    assert si2.objects == si.objects
    assert format_input(si2) == format_input(si)

def test_duplicate_ids():
    with pytest.raises(InputFormatError, match="duplicate picture IDs"):
        parse_input("0.1 2 5 1 1 5 1 2 0")
    with pytest.raises(InputFormatError, match="duplicate object IDs"):
        parse_input("0.1 0 2 3 1 1 3 1 2")
