"""
Messages exchanged between the coordinator and the workers.

Every message carries its Tag. The tag values are also used as the
message tags on the MPI transport.
"""

import enum


class Tag(enum.IntEnum):
    PICTURE   = 0
    OBJECT    = 1
    RESULT    = 2
    TERMINATE = 3
    SETUP     = 4


class Message:
    """Base class. Subclasses set tag and __slots__."""
    __slots__ = ()
    tag = None

    def _fields(self):
        return tuple(getattr(self, k) for k in self.__slots__)

    def __getstate__(self):
        return self._fields()

    def __setstate__(self, state):
        for (k, v) in zip(self.__slots__, state):
            setattr(self, k, v)

    def __eq__(self, b):
        return self.__class__ == b.__class__ and self._fields() == b._fields()

    def __repr__(self):
        args = " ".join(f"{k}={getattr(self, k)!r}" for k in self.__slots__)
        return f"<{self.__class__.__name__} {args}>".replace(" >", ">")


class SetupMessage(Message):
    """Broadcast once by the coordinator before any objects or pictures."""
    __slots__ = ('threshold', 'picture_count', 'object_count')
    tag = Tag.SETUP

    def __init__(self, threshold, picture_count, object_count):
        self.threshold = threshold
        self.picture_count = picture_count
        self.object_count = object_count


class ObjectMessage(Message):
    __slots__ = ('obj',)
    tag = Tag.OBJECT

    def __init__(self, obj):
        self.obj = obj


class PictureMessage(Message):
    """One unit of work: the picture and its index in the input."""
    __slots__ = ('index', 'picture')
    tag = Tag.PICTURE

    def __init__(self, index, picture):
        self.index = index
        self.picture = picture


class ResultMessage(Message):
    __slots__ = ('index', 'entry')
    tag = Tag.RESULT

    def __init__(self, index, entry):
        self.index = index
        self.entry = entry


class TerminateMessage(Message):
    """No more work will arrive."""
    __slots__ = ()
    tag = Tag.TERMINATE
