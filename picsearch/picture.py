"""This module provides the following classes:

Grid - A square, read-only grid of integer pixels with an id.
Picture - A grid that is searched.
TemplateObject - A grid that is searched for.

Position - (row, column) of the top-left corner of an object inside a picture.
MatchRecord - An object id and the position where it was placed.

Grids are immutable. When they are pickled to be sent to another process,
the receiver gets its own fresh read-only copy.
"""

import collections
import json

import numpy as np

from .constants import C

Position = collections.namedtuple('Position', ['row', 'column'])


class Grid:
    """Square grid of pixels. Subclassed for pictures and template objects."""
    __slots__ = ('id', 'pixels')

    def __init__(self, id, pixels, size=None):  # pylint: disable=redefined-builtin
        arr = np.array(pixels, dtype=C.PIXEL_DTYPE)
        if size is not None:
            arr = arr.reshape(size, size)
        if arr.ndim != 2 or arr.shape[0] != arr.shape[1] or arr.shape[0] == 0:
            raise ValueError(f"{self.__class__.__name__} {id} must be a non-empty square grid, "
                             f"not shape {arr.shape}")
        arr.flags.writeable = False
        self.id = int(id)
        self.pixels = arr

    @property
    def size(self):
        return self.pixels.shape[0]

    def __reduce__(self):
        return (self.__class__, (self.id, self.pixels))

    def __eq__(self, b):
        return (self.__class__ == b.__class__
                and self.id == b.id
                and np.array_equal(self.pixels, b.pixels))

    def __hash__(self):
        return hash((self.__class__.__name__, self.id, self.size))

    def __repr__(self):
        return f"<{self.__class__.__name__} id={self.id} size={self.size}>"


class Picture(Grid):
    """A picture that is searched for template objects."""

    def alignments(self, obj):
        """Number of valid top-left positions along each axis. 0 if obj does not fit."""
        return max(self.size - obj.size + 1, 0)

    def fits(self, obj, position):
        """True if obj placed at position lies fully inside this picture."""
        last = self.size - obj.size
        return 0 <= position[0] <= last and 0 <= position[1] <= last


class TemplateObject(Grid):
    """An object to look for in every picture."""


class MatchRecord:
    """One found placement of an object in a picture.
    row == column == C.NOT_FOUND means the slot has not been placed."""
    __slots__ = ('object_id', 'row', 'column')

    def __init__(self, object_id=C.NOT_FOUND, row=C.NOT_FOUND, column=C.NOT_FOUND):
        self.object_id = object_id
        self.row = row
        self.column = column

    @property
    def placed(self):
        return self.row != C.NOT_FOUND and self.column != C.NOT_FOUND

    @property
    def position(self):
        return Position(self.row, self.column)

    def __eq__(self, b):
        return (isinstance(b, MatchRecord)
                and (self.object_id, self.row, self.column) == (b.object_id, b.row, b.column))

    def __hash__(self):
        return hash((self.object_id, self.row, self.column))

    def __repr__(self):
        return f"<MatchRecord object={self.object_id} Position({self.row},{self.column})>"

    def __getstate__(self):
        return (self.object_id, self.row, self.column)

    def __setstate__(self, state):
        (self.object_id, self.row, self.column) = state

    def dict(self):
        return {'object_id': self.object_id, 'row': self.row, 'column': self.column}

    @classmethod
    def fromDict(cls, d):
        return cls(d['object_id'], d['row'], d['column'])

    @property
    def json(self):
        return json.dumps(self.dict())
