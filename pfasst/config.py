"""
command line configuration, the parsed namespace is kept in CONFIG so
controllers and sweepers can pick up their settings with get_value
"""
import argparse

CONFIG = None


def build_parser(parser=None):
    """
    add the controller options to parser, or to a fresh parser
    :param parser: an application parser that already holds sweeper specific options
    :return:
    """
    if parser is None:
        parser = argparse.ArgumentParser(description="parallel-in-time controller settings")
    parser.add_argument('--t0', help='start time', default=0.0, type=float)
    parser.add_argument('--tend', help='end time', default=None, type=float)
    parser.add_argument('--dt', help='time step size', default=None, type=float)
    parser.add_argument('-ni', '--num-iters', help='maximum number of iterations per step',
                        default=None, type=int)
    parser.add_argument('-ns', '--nsweeps', help='number of sweeps on each level per iteration',
                        default=1, type=int)
    parser.add_argument('-l', '--log', help='turn on logging', action="store_true", default=False)
    parser.add_argument('-v', '--verbose', help='print timing tables', action="store_true", default=False)
    return parser


def get_configuration(args=None, parser=None):
    global CONFIG
    parser = build_parser(parser)
    CONFIG, _ = parser.parse_known_args(args=args)
    return CONFIG


def get_value(name, default=None):
    """
    :return: the configured value of name, default when it was not configured
    """
    if CONFIG is None:
        return default
    value = getattr(CONFIG, name, None)
    return default if value is None else value


def clear():
    global CONFIG
    CONFIG = None
