"""
Reading and writing the input file.

The input is whitespace separated text:

    threshold
    picture count
        picture id, dimension, dimension*dimension pixels   (once per picture)
    object count
        object id, dimension, dimension*dimension pixels    (once per object)

Short or malformed input raises InputFormatError naming the field that could not be read.
"""

import logging

import numpy as np

from .constants import C
from .picture import Picture, TemplateObject
from . import storage

logger = logging.getLogger(__name__)
PIXEL_RANGE = np.iinfo(C.PIXEL_DTYPE)


class InputFormatError(ValueError):
    """The input file could not be parsed."""


class SearchInput:
    """Everything the coordinator loads before a run."""
    __slots__ = ('threshold', 'pictures', 'objects')

    def __init__(self, threshold, pictures, objects):
        self.threshold = threshold
        self.pictures = list(pictures)
        self.objects = list(objects)

    def __repr__(self):
        return (f"<SearchInput threshold={self.threshold} "
                f"pictures={len(self.pictures)} objects={len(self.objects)}>")


class _Tokens:
    def __init__(self, text):
        self.tokens = text.split()
        self.pos = 0

    def next(self, what, convert):
        if self.pos >= len(self.tokens):
            raise InputFormatError(f"Error reading {what}: unexpected end of input")
        token = self.tokens[self.pos]
        try:
            value = convert(token)
        except ValueError:
            raise InputFormatError(f"Error reading {what}: {token!r} at token {self.pos}") from None
        self.pos += 1
        return value

    def next_int(self, what):
        return self.next(what, int)

    def next_float(self, what):
        return self.next(what, float)


def _read_grids(tokens, cls, what):
    count = tokens.next_int(f"number of {what}s")
    if count < 0:
        raise InputFormatError(f"Error reading number of {what}s: {count} is negative")
    grids = []
    for _ in range(count):
        gid = tokens.next_int(f"{what} ID")
        dim = tokens.next_int(f"{what} dimension")
        if dim < 1:
            raise InputFormatError(f"Error reading {what} dimension: {dim} for {what} {gid}")
        pixels = [tokens.next_int(f"color of {what} {gid}") for _ in range(dim*dim)]
        (lo, hi) = (PIXEL_RANGE.min, PIXEL_RANGE.max)
        for v in pixels:
            if not lo <= v <= hi:
                raise InputFormatError(f"Error reading color of {what} {gid}: {v} is outside [{lo}, {hi}]")
        grids.append(cls(gid, pixels, size=dim))
    ids = [g.id for g in grids]
    if len(set(ids)) != len(ids):
        dups = sorted({i for i in ids if ids.count(i) > 1})
        raise InputFormatError(f"Error reading {what}s: duplicate {what} IDs {dups}")
    return grids


def parse_input(text):
    tokens = _Tokens(text)
    threshold = tokens.next_float("matching threshold")
    pictures = _read_grids(tokens, Picture, "picture")
    objects = _read_grids(tokens, TemplateObject, "object")
    if tokens.pos != len(tokens.tokens):
        logger.warning("ignoring %d tokens after the last object", len(tokens.tokens) - tokens.pos)
    return SearchInput(threshold, pictures, objects)


def read_input(url):
    """Load and parse the input file at url."""
    try:
        data = storage.load(url)
    except OSError as e:
        raise InputFormatError(f"Error reading input file {url}: {e}") from e
    try:
        text = data.decode('utf-8')
    except UnicodeDecodeError as e:
        raise InputFormatError(f"Error reading input file {url}: {e}") from e
    si = parse_input(text)
    logger.info("read %s from %s", si, url)
    return si


def _format_grids(grids):
    lines = [str(len(grids))]
    for g in grids:
        lines.append(str(g.id))
        lines.append(str(g.size))
        lines.extend(" ".join(str(int(v)) for v in row) for row in g.pixels)
    return lines


def format_input(si:SearchInput):
    lines = [repr(float(si.threshold))]
    lines.extend(_format_grids(si.pictures))
    lines.extend(_format_grids(si.objects))
    return "\n".join(lines) + "\n"


def write_input(url, si:SearchInput):
    storage.save(url, format_input(si).encode('utf-8'), mimetype='text/plain')
