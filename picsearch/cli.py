"""
Command line interface.

    picsearch run --input input.txt --output output.txt --workers 4
    mpiexec -n 5 picsearch run --transport mpi
    picsearch generate input.txt --pictures 10 --picture-size 100 --objects 5 --object-size 10
"""

import argparse
import logging
import sys

from .config import RunConfig, ConfigurationError
from .constants import C
from .engine import ENGINES
from .inputfile import write_input
from .supervisor import run_local, run_mpi
from .synth import make_search_input

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s [%(rank)s] %(name)s: %(message)s"


def setup_logging(*, verbose=False, debug=False, rank=None):
    """Root logger at WARNING, INFO with verbose, DEBUG with debug. Every line shows the rank."""
    if debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING
    old_factory = logging.getLogRecordFactory()
    def factory(*args, **kwargs):
        record = old_factory(*args, **kwargs)
        if rank is not None:
            record.rank = f"rank{rank}"
        elif record.threadName.startswith("rank"):
            record.rank = record.threadName
        else:
            record.rank = record.processName
        return record
    logging.setLogRecordFactory(factory)
    logging.basicConfig(format=LOG_FORMAT, level=level, force=True)


def mpi_rank():
    from mpi4py import MPI # pylint: disable=import-outside-toplevel
    return MPI.COMM_WORLD.Get_rank()


def cmd_run(args):
    overrides = {'input': args.input, 'output': args.output, 'json_output': args.json,
                 'engine': args.engine, 'max_tasks': args.max_tasks,
                 'transport': args.transport, 'workers': args.workers, 'kind': args.kind,
                 'verbose': args.verbose or None, 'debug': args.debug or None}
    if args.config:
        config = RunConfig.from_yaml(args.config, **overrides)
    else:
        config = RunConfig(**overrides)
    if config.transport == 'mpi':
        setup_logging(verbose=config.verbose, debug=config.debug, rank=mpi_rank())
        run_mpi(config)
    else:
        setup_logging(verbose=config.verbose, debug=config.debug)
        logger.info("%s", config)
        run_local(config)
    return 0


def cmd_generate(args):
    setup_logging(verbose=args.verbose, debug=args.debug)
    (si, planted) = make_search_input(num_pictures=args.pictures, picture_size=args.picture_size,
                                      num_objects=args.objects, object_size=args.object_size,
                                      plants_per_picture=args.plants, threshold=args.threshold,
                                      seed=args.seed)
    write_input(args.path, si)
    for ((pid, oid), pos) in sorted(planted.items()):
        logger.info("picture %d: object %d at Position(%d,%d)", pid, oid, pos.row, pos.column)
    print(f"wrote {len(si.pictures)} pictures and {len(si.objects)} objects "
          f"({len(planted)} placements) to {args.path}")
    return 0


def get_parser():
    parser = argparse.ArgumentParser(prog='picsearch',
                                     description="Search pictures for template objects on a pool of workers",
                                     formatter_class=argparse.ArgumentDefaultsHelpFormatter)
    parser.add_argument("--verbose", help="log progress", action='store_true')
    parser.add_argument("--debug", help="log everything", action='store_true')
    sub = parser.add_subparsers(dest='command', required=True)

    run = sub.add_parser('run', help='search the pictures in an input file')
    run.add_argument("--config", help='YAML file with RunConfig keys; flags override it')
    run.add_argument("--input", help=f'input file or url (default: {C.DEFAULT_INPUT})')
    run.add_argument("--output", help=f'report file or url (default: {C.DEFAULT_OUTPUT})')
    run.add_argument("--json", help='also write a JSON report here')
    run.add_argument("--engine", choices=sorted(ENGINES), help=f'match engine (default: {C.DEFAULT_ENGINE})')
    run.add_argument("--max-tasks", type=int, help='objects scored at once in each worker (default: cpu count)')
    run.add_argument("--transport", choices=RunConfig.TRANSPORTS, help='local or mpi (default: local)')
    run.add_argument("--workers", type=int, help='number of local workers (default: 2)')
    run.add_argument("--kind", choices=('threads', 'processes'), help='local workers are threads or processes')
    run.set_defaults(func=cmd_run)

    gen = sub.add_parser('generate', help='write a synthetic input file',
                         formatter_class=argparse.ArgumentDefaultsHelpFormatter)
    gen.add_argument("path", help="where to write the input file")
    gen.add_argument("--pictures", type=int, default=4)
    gen.add_argument("--picture-size", type=int, default=100)
    gen.add_argument("--objects", type=int, default=5)
    gen.add_argument("--object-size", type=int, default=10)
    gen.add_argument("--plants", type=int, help="objects planted per picture (default: all)")
    gen.add_argument("--threshold", type=float, default=0.1)
    gen.add_argument("--seed", type=int, default=0)
    gen.set_defaults(func=cmd_generate)
    return parser


def main(argv=None):
    parser = get_parser()
    args = parser.parse_args(argv)
    try:
        return args.func(args)
    except ConfigurationError as e:
        print(f"configuration error: {e}", file=sys.stderr)
        return 2
