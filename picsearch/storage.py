"""
Storage layer for picsearch.
Handles all get and put operations in a single place, so input files and reports
can live on local disk, in S3, or (for reading) on a web server.

Local writes are serialized with a FileLock on <path>.lock. The lock file is left in
place after the write; removing it on release would let a waiting writer and a new
one lock different files.
"""

import functools
import logging
import mimetypes
import os
import urllib.parse
from os.path import dirname

import boto3
import requests
from filelock import FileLock

from .constants import C

logger = logging.getLogger(__name__)

@functools.lru_cache(maxsize=4)
def mkdirs(path):
    logger.debug("mkdirs %s", path)
    if path:
        os.makedirs(path, exist_ok=True)

@functools.lru_cache(maxsize=4)
def s3_client():
    return boto3.session.Session().client('s3')

def local_path(url, o):
    return o.path if o.scheme == 'file' else url

def save(url, data:bytes, mimetype=None):
    """Write data to url. Local writes hold a lock file for the duration."""
    url = str(url)
    o = urllib.parse.urlparse(url)
    logger.debug("save url=%s len=%d", url, len(data))
    if o.scheme in ('file', ''):
        path = local_path(url, o)
        mkdirs(dirname(path))
        with FileLock(path + ".lock"):
            with open(path, 'wb') as f:
                f.write(data)
    elif o.scheme == 's3':
        if mimetype is None:
            mimetype = mimetypes.guess_type(o.path)[0] or 'text/plain'
        s3_client().put_object(Body=data,
                               Bucket=o.netloc,
                               Key=o.path[1:],
                               ContentType=mimetype)
    else:
        raise ValueError(f"unknown scheme {o.scheme} in url {url}")


def load(url) -> bytes:
    url = str(url)
    o = urllib.parse.urlparse(url)
    logger.debug("load url=%s", url)
    if o.scheme in ('file', ''):
        with open(local_path(url, o), 'rb') as f:
            return f.read()
    elif o.scheme == 's3':
        return s3_client().get_object(Bucket=o.netloc, Key=o.path[1:])['Body'].read()
    elif o.scheme in ('http', 'https'):
        r = requests.get(url, timeout=C.DEFAULT_GET_TIMEOUT)
        r.raise_for_status()
        return r.content
    else:
        raise ValueError(f"unknown scheme {o.scheme} in url {url}")
