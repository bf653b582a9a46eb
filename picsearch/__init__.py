"""Design document.

Abstractions related to the data:

Picture - A square grid of integer pixels with an id. Pictures are
          immutable. The coordinator owns all of them; a worker owns a
          copy of the one picture it is searching.

TemplateObject - A square grid that is searched for in every
          picture. Every worker gets its own copy of every object once,
          at the start of the run.

ResultLog - The findings for one picture: which objects were found
          and where. Sized to the number of objects; filled in the
          order the searches complete.

Abstractions related to the search:

MatchEngine - Scores one object against one picture and returns the
          first position within the threshold, or None. Pluggable.

WorkerSearchCoordinator - Searches one picture for all objects,
          scoring the objects concurrently on a bounded thread pool,
          and returns one ResultLog.

Channel - Ordered, tagged message passing between the participants of a
          run. Local (threads or processes) or MPI.

Coordinator / Worker - The dispatch protocol. The coordinator hands out
          one picture per worker and then one more to whichever worker
          answers, until the pictures run out and every worker has been
          told to stop.

RunSupervisor - Picks the role for this participant, runs it, writes
          the report, and aborts the whole run on any fatal error.
"""

__version__ = '1.0.0'
