"""
Search one picture for every template object.

The objects are scored concurrently on a bounded thread pool. Each task
calls the match engine for one object. The coordinating thread waits for
all of the tasks and appends each found placement to the picture's
ResultLog as the tasks complete, so the record order is completion order.
"""

from concurrent.futures import ThreadPoolExecutor, as_completed
import logging
import os

from .picture import MatchRecord, Picture
from .result_log import ResultLog, MatchFailure
from .stage import Stage

logger = logging.getLogger(__name__)


def default_max_tasks(num_objects):
    return max(1, min(num_objects, os.cpu_count() or 1))


class WorkerSearchCoordinator(Stage):
    """Produces exactly one ResultLog per picture.
    :param engine: the MatchEngine that scores one object against one picture.
    :param objects: the template objects. Read-only; shared by every task.
    :param threshold: the matching threshold passed to the engine.
    :param max_tasks: the most objects scored at once. Defaults to the CPU count.
    """
    def __init__(self, engine, objects, threshold, max_tasks=None):
        super().__init__()
        self.engine    = engine
        self.objects   = tuple(objects)
        self.threshold = threshold
        self.max_tasks = max_tasks if max_tasks else default_max_tasks(len(self.objects))
        self.executor  = None

    def _executor(self):
        if self.executor is None:
            self.executor = ThreadPoolExecutor(max_workers=self.max_tasks,
                                               thread_name_prefix="search")
        return self.executor

    def process(self, picture:Picture):
        log = ResultLog(picture.id, len(self.objects))
        futures = {self._executor().submit(self.engine.score, picture, obj, self.threshold): obj
                   for obj in self.objects}
        for future in as_completed(futures):
            obj = futures[future]
            try:
                position = future.result()
            except MemoryError:
                raise
            except Exception as e: # pylint: disable=broad-except
                logger.error("picture %s object %s: match failed: %s", picture.id, obj.id, e)
                log.add_failure(MatchFailure(obj.id, str(e)))
                continue
            if position is None:
                continue
            if not picture.fits(obj, position):
                logger.error("picture %s object %s: engine returned %s outside the picture",
                             picture.id, obj.id, position)
                log.add_failure(MatchFailure(obj.id, f"position {tuple(position)} out of bounds"))
                continue
            logger.debug("picture %s object %s found at %s", picture.id, obj.id, position)
            log.append(MatchRecord(obj.id, int(position[0]), int(position[1])))
        return log

    def shutdown(self):
        if self.executor is not None:
            self.executor.shutdown(wait=True)
            self.executor = None
