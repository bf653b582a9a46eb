"""
The report written by the coordinator at the end of a run.
One line per picture, in the order the results arrived.
"""

import json
import logging

from .constants import C
from . import storage

logger = logging.getLogger(__name__)


def report_line(entry):
    if entry.found_count < C.MIN_OBJECTS_TO_REPORT:
        return f"Picture {entry.picture_id}: No three different Objects were found"
    line = f"Picture {entry.picture_id}: found Objects: "
    for r in entry.found:
        if r.placed:
            line += f" {r.object_id} Position({r.row},{r.column});"
    return line


def format_report(entries):
    return "".join(report_line(e) + "\n" for e in entries)


def write_report(url, entries):
    storage.save(url, format_report(entries).encode('utf-8'), mimetype='text/plain')
    logger.info("wrote %d lines to %s", len(entries), url)


def write_json_report(url, entries):
    data = json.dumps([e.dict() for e in entries], indent=2)
    storage.save(url, data.encode('utf-8'), mimetype='application/json')
    logger.info("wrote %d entries to %s", len(entries), url)
