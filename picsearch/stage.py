"""
Stage implementation.

A Stage processes one item at a time and keeps timing statistics
for every item it has processed.
"""

import math
import time
from abc import ABC, abstractmethod


class Stage(ABC):
    """Abstract base class for timed processing steps."""

    def __init__(self):
        self.sum_t   = 0
        self.sum_t2  = 0
        self.count   = 0

    @abstractmethod
    def process(self, item):
        """Called to process one item. Returns the result."""

    def run(self, item):
        """Process item and record how long it took."""
        t0 = time.time()
        ret = self.process(item)
        t = time.time() - t0
        self.sum_t  += t
        self.sum_t2 += (t*t)
        self.count  += 1
        return ret

    def shutdown(self):
        """Called when the run is being shut down."""

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.shutdown()
        return False

    @property
    def t_mean(self):
        return self.sum_t / self.count if self.count>0 else float("nan")

    @property
    def t2_mean(self):
        return self.sum_t2 / self.count if self.count>0 else float("nan")

    @property
    def t_variance(self):
        return self.t2_mean - self.t_mean * self.t_mean

    @property
    def t_stddev(self):
        # rounding can make the variance slightly negative
        return math.sqrt(max(self.t_variance, 0.0)) if self.count>0 else float("nan")

    def stats(self):
        name = self.__class__.__name__
        return f"{name}: calls: {self.count}  mean: {self.t_mean:.2}s  stddev: {self.t_stddev:.2}"
