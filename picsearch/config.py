"""
Run configuration.

Values come from the defaults below, then an optional YAML file, then the command line.
"""

import logging

import yaml

from .constants import C

logger = logging.getLogger(__name__)


class ConfigurationError(ValueError):
    """The configuration cannot be used."""


class RunConfig:
    __slots__ = ('input', 'output', 'json_output', 'engine', 'max_tasks',
                 'transport', 'workers', 'kind', 'verbose', 'debug')
    TRANSPORTS = ('local', 'mpi')

    def __init__(self, **kwargs):
        self.input = C.DEFAULT_INPUT
        self.output = C.DEFAULT_OUTPUT
        self.json_output = None
        self.engine = C.DEFAULT_ENGINE
        self.max_tasks = None           # objects scored at once in a worker; None = cpu count
        self.transport = 'local'
        self.workers = 2                # local transport only
        self.kind = 'threads'           # local transport only: threads or processes
        self.verbose = False
        self.debug = False
        self.update(**kwargs)

    def update(self, **kwargs):
        for (k, v) in kwargs.items():
            if v is None:
                continue
            try:
                setattr(self, k, v)
            except AttributeError:
                raise ConfigurationError(f"unknown configuration key '{k}'") from None
        self.validate()
        return self

    def validate(self):
        if self.transport not in self.TRANSPORTS:
            raise ConfigurationError(f"transport must be one of {' '.join(self.TRANSPORTS)}, "
                                     f"not {self.transport!r}")
        if not isinstance(self.workers, int) or self.workers < 0:
            raise ConfigurationError(f"workers must be an integer >= 0, not {self.workers!r}")
        if self.max_tasks is not None and (not isinstance(self.max_tasks, int) or self.max_tasks < 1):
            raise ConfigurationError(f"max_tasks must be an integer >= 1, not {self.max_tasks!r}")

    def dict(self):
        return {k: getattr(self, k) for k in self.__slots__}

    def __repr__(self):
        return f"<RunConfig {self.dict()}>"

    @classmethod
    def from_yaml(cls, path, **overrides):
        """Read a config file. Keys are the RunConfig attributes."""
        try:
            with open(path) as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"cannot read config file {path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigurationError(f"config file {path} must contain a mapping")
        logger.debug("config from %s: %s", path, data)
        return cls(**data).update(**overrides)
