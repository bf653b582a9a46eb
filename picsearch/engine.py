"""
Match engines: the pluggable scorers that look for one template object in one picture.

An engine evaluates every top-left alignment of the object fully inside the
picture and returns the first alignment, in row-major order, whose
dissimilarity is at most the threshold. If there is none, it returns None.

Engines are side-effect free, so one instance can be shared by many threads,
and picklable, so they can be shipped to worker processes.

relative - mean of |p - o| / |p| over the overlapping pixels (p == 0 uses 1).
opencv   - cv2.matchTemplate with TM_SQDIFF_NORMED.
"""

from abc import ABC, abstractmethod
import logging

import cv2
import numpy as np
from numpy.lib.stride_tricks import sliding_window_view

from .picture import Picture, TemplateObject, Position

logger = logging.getLogger(__name__)


class MatchEngineError(RuntimeError):
    """The engine could not score an object against a picture."""


class MatchEngine(ABC):
    """Abstract base class for scorers."""
    name = None

    @abstractmethod
    def score(self, picture:Picture, obj:TemplateObject, threshold:float):
        """Return the Position of the first alignment within threshold, or None."""

    def __repr__(self):
        return f"<{self.__class__.__name__}>"


class RelativeDifferenceEngine(MatchEngine):
    """Mean relative pixel difference, computed one row band at a time
    so that the search can stop at the first row that has a match."""
    name = 'relative'

    def band_scores(self, band, obj_pixels):
        """Dissimilarity of obj against every column of an s-high band of the picture."""
        s = obj_pixels.shape[0]
        windows = sliding_window_view(band, (s, s))[0]
        denom = np.abs(windows)
        denom[denom == 0] = 1.0
        return (np.abs(windows - obj_pixels) / denom).mean(axis=(1, 2))

    def score(self, picture, obj, threshold):
        rows = picture.alignments(obj)
        if rows == 0:
            return None
        s = obj.size
        o = obj.pixels.astype(np.float64)
        for row in range(rows):
            band = picture.pixels[row:row+s].astype(np.float64)
            hits = np.flatnonzero(self.band_scores(band, o) <= threshold)
            if hits.size:
                return Position(row, int(hits[0]))
        return None


class OpenCVMatchEngine(MatchEngine):
    """OpenCV template matching. Scores are normalized squared differences in [0,1].
    An all-zero object has no norm, so it scores 0 on all-zero windows and 1 elsewhere."""
    name = 'opencv'
    method = cv2.TM_SQDIFF_NORMED

    def score(self, picture, obj, threshold):
        if picture.alignments(obj) == 0:
            return None
        (image, templ) = (picture.pixels.astype(np.float32), obj.pixels.astype(np.float32))
        try:
            if obj.pixels.any():
                result = cv2.matchTemplate(image, templ, self.method)
            else:
                energy = cv2.matchTemplate(image, templ, cv2.TM_SQDIFF)
                result = np.where(energy < 0.5, 0.0, 1.0)
        except cv2.error as e: # pylint: disable=catching-non-exception
            raise MatchEngineError(f"matchTemplate failed for object {obj.id} in picture {picture.id}: {e}") from e
        hits = np.argwhere(result <= threshold)
        if len(hits) == 0:
            return None
        (row, column) = hits[0]
        return Position(int(row), int(column))


ENGINES = {cls.name: cls for cls in (RelativeDifferenceEngine, OpenCVMatchEngine)}

def engine_from_name(name, **kwargs):
    """Return a new engine given its name."""
    try:
        cls = ENGINES[name]
    except KeyError:
        raise ValueError("Engine name '" + str(name) +
                         "' must be one of " + " ".join(sorted(ENGINES))) from None
    logger.debug("engine %s", cls.__name__)
    return cls(**kwargs)
