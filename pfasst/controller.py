"""
base controller for SDC, MLSDC and PFASST, see pfasst.sdc and pfasst.mlsdc
"""
import collections
import logging

from pfasst import config, time_precision
from pfasst.interfaces import ISweeper, ITransfer
from pfasst.timer import EventTimer


class RangeIter(object):
    """
    bounded counter shared by the step loop and the iteration loop
    """
    def __init__(self, n=0):
        self.i = 0
        self.n = n

    def set_size(self, n):
        self.n = n

    def reset(self, i=0):
        self.i = i

    def valid(self):
        return self.i < self.n

    def next(self):
        self.i += 1

    def __iter__(self):
        while self.valid():
            yield self.i
            self.next()

    def __repr__(self):
        return "RangeIter({}/{})".format(self.i, self.n)


class LevelIter(object):
    """
    random access cursor over the level hierarchy of a controller.
    a cursor is nothing but an index and the controller it points into,
    all comparisons and arithmetic act on the index only
    """
    def __init__(self, level, controller):
        self.level = level
        self.controller = controller

    def current(self, cls=ISweeper):
        return self.controller.get_level(self.level, cls)

    def fine(self, cls=ISweeper):
        return self.controller.get_level(self.level + 1, cls)

    def coarse(self, cls=ISweeper):
        return self.controller.get_level(self.level - 1, cls)

    def transfer(self, cls=ITransfer):
        return self.controller.get_transfer(self.level, cls)

    def increment(self):
        self.level += 1
        return self

    def decrement(self):
        self.level -= 1
        return self

    def __add__(self, offset):
        assert isinstance(offset, int), "can only offset a level cursor by an int, got {}".format(offset)
        return LevelIter(self.level + offset, self.controller)

    __radd__ = __add__

    def __sub__(self, other):
        if isinstance(other, LevelIter):
            return self.level - other.level
        assert isinstance(other, int), "can only offset a level cursor by an int, got {}".format(other)
        return LevelIter(self.level - other, self.controller)

    def __eq__(self, other):
        if not isinstance(other, LevelIter):
            return NotImplemented
        return self.level == other.level

    def __ne__(self, other):
        if not isinstance(other, LevelIter):
            return NotImplemented
        return self.level != other.level

    def __lt__(self, other):
        if not isinstance(other, LevelIter):
            return NotImplemented
        return self.level < other.level

    def __le__(self, other):
        if not isinstance(other, LevelIter):
            return NotImplemented
        return self.level <= other.level

    def __gt__(self, other):
        if not isinstance(other, LevelIter):
            return NotImplemented
        return self.level > other.level

    def __ge__(self, other):
        if not isinstance(other, LevelIter):
            return NotImplemented
        return self.level >= other.level

    def __hash__(self):
        return hash(self.level)

    def __int__(self):
        return self.level

    def __repr__(self):
        return "LevelIter({})".format(self.level)


class Controller(object):
    """
    owns the level hierarchy, coarsest level at index 0, finest at the end,
    and the step / iteration / time bookkeeping that sweepers read through
    their back reference.

    the transfer operator stored at index i connects level i with level i-1,
    the coarsest level needs none
    """
    def __init__(self):
        self.levels = collections.deque()
        self.transfer = collections.deque()

        self.steps = RangeIter()
        self.iterations = RangeIter()

        self.t0 = time_precision(0.0)
        self.t = time_precision(0.0)
        self.dt = time_precision(0.0)
        self.tend = time_precision(0.0)

        self.is_setup = False
        self.timer = EventTimer(self)

    def set_options(self, all_sweepers=True):
        """
        pick up t0, tend, dt and num_iters from pfasst.config, optionally let
        every sweeper read its own options as well
        """
        if config.get_value('log', False):
            logging.basicConfig(level=logging.DEBUG)

        self.t0 = time_precision(config.get_value('t0', self.t0))
        self.tend = time_precision(config.get_value('tend', self.tend))
        self.dt = time_precision(config.get_value('dt', self.dt))
        self.iterations.set_size(config.get_value('num_iters', self.iterations.n))
        self.t = self.t0 + self.steps.i * self.dt
        self.steps.set_size(self.compute_number_of_steps())

        logging.debug("controller options t0 {} tend {} dt {} num_iters {}".format(
            self.t0, self.tend, self.dt, self.iterations.n))

        if all_sweepers:
            for level_iter in self.iter_levels():
                level_iter.current().set_options()

    def level_is_coarse(self, level_iter):
        return False

    def setup(self):
        assert self.nlevels() > 0, "controller needs at least one level"

        for level_iter in self.iter_levels():
            if level_iter.level > 0:
                assert self.transfer[level_iter.level] is not None, \
                    "level {} has no transfer operator to level {}".format(level_iter.level, level_iter.level - 1)

            sweeper = level_iter.current()
            sweeper.set_controller(self)
            with self.timer("setup"):
                sweeper.setup(self.level_is_coarse(level_iter))
            logging.debug("set up level {} of {} ({})".format(
                level_iter.level, self.nlevels(), type(sweeper).__name__))

        self.is_setup = True

    def set_duration(self, t0, tend, dt, niters):
        self.t0 = time_precision(t0)
        self.t = self.t0
        self.tend = time_precision(tend)
        self.dt = time_precision(dt)

        self.steps.set_size(self.compute_number_of_steps())
        self.steps.reset()
        self.iterations.set_size(niters)
        self.iterations.reset()

    def compute_number_of_steps(self):
        if self.dt <= 0.0:
            return 0
        return max(0, int(round((self.tend - self.t0) / self.dt)))

    def add_level(self, sweeper, transfer=None, coarse=True):
        """
        :param sweeper: the ISweeper of the new level
        :param transfer: ITransfer between the new level and its coarser neighbor
        :param coarse: insert as the new coarsest level, otherwise as the new finest level
        :return:
        """
        assert not self.is_setup, "levels cannot be added once the controller has been set up"
        assert isinstance(sweeper, ISweeper), "level must be an ISweeper, got {}".format(type(sweeper))
        assert transfer is None or isinstance(transfer, ITransfer), \
            "transfer must be an ITransfer, got {}".format(type(transfer))
        assert coarse or transfer is not None or self.nlevels() == 0, \
            "a new finest level needs a transfer operator to level {}".format(self.nlevels() - 1)

        if coarse:
            self.levels.appendleft(sweeper)
            self.transfer.appendleft(transfer)
        else:
            self.levels.append(sweeper)
            self.transfer.append(transfer)
        logging.debug("added {} as {} level, {} levels".format(
            type(sweeper).__name__, "coarsest" if coarse else "finest", self.nlevels()))

    def get_level(self, level, cls=ISweeper):
        assert 0 <= level < self.nlevels(), \
            "level {} outside of hierarchy with {} levels".format(level, self.nlevels())
        sweeper = self.levels[level]
        assert isinstance(sweeper, cls), "level {} holds a {}, not a {}".format(
            level, type(sweeper).__name__, cls.__name__)
        return sweeper

    def get_finest(self, cls=ISweeper):
        return self.get_level(self.nlevels() - 1, cls)

    def get_coarsest(self, cls=ISweeper):
        return self.get_level(0, cls)

    def get_transfer(self, level, cls=ITransfer):
        assert 0 <= level < self.nlevels(), \
            "transfer {} outside of hierarchy with {} levels".format(level, self.nlevels())
        transfer = self.transfer[level]
        assert isinstance(transfer, cls), "transfer {} holds a {}, not a {}".format(
            level, type(transfer).__name__, cls.__name__)
        return transfer

    def nlevels(self):
        return len(self.levels)

    def finest(self):
        return LevelIter(self.nlevels() - 1, self)

    def coarsest(self):
        return LevelIter(0, self)

    def iter_levels(self, reverse=False):
        """
        yield a fresh cursor for every level, coarsest first unless reverse
        """
        if reverse:
            level_iter = self.finest()
            while level_iter >= self.coarsest():
                yield level_iter + 0
                level_iter.decrement()
        else:
            level_iter = self.coarsest()
            while level_iter <= self.finest():
                yield level_iter + 0
                level_iter.increment()

    def get_step(self):
        return self.steps.i

    def set_step(self, n):
        """
        jump to step n, time moves along by whole steps
        """
        assert n >= self.steps.i, "step index only moves forward, {} -> {}".format(self.steps.i, n)
        self.t += (n - self.steps.i) * self.dt
        self.steps.i = n
        self.iterations.reset()

    def advance_time(self, nsteps=1):
        self.steps.i += nsteps
        self.t += nsteps * self.dt
        self.iterations.reset()

    def get_time(self):
        return self.t

    def get_start_time(self):
        return self.t0

    def get_time_step(self):
        return self.dt

    def get_end_time(self):
        return self.tend

    def get_iteration(self):
        return self.iterations.i

    def set_iteration(self, iteration):
        self.iterations.reset(iteration)

    def advance_iteration(self):
        self.iterations.next()

    def get_max_iterations(self):
        return self.iterations.n

    def show_timing_information(self):
        all_level_keys = set()
        for sweeper in self.levels:
            all_level_keys.update(sweeper.timer.names())

        print("{:26.26s}".format(""), end=" ")
        for level_iter in self.iter_levels():
            print("{:12d}".format(level_iter.level), end=" ")
        print(" {:>12s}".format("total"))
        print("{:26.26s}".format("-"*26), end=" ")
        for _ in self.levels:
            print("{:>12s}".format("-"*12), end=" ")
        print(" {:>12s}".format("-"*12))
        for key in sorted(all_level_keys):
            print("{:26.26s}".format(key), end=" ")
            row_total = 0.0
            for sweeper in self.levels:
                level_time = sweeper.timer.total_time(key)
                if level_time is None:
                    print("{:>12s}".format("NA"), end=" ")
                else:
                    print("{:12.6f}".format(level_time), end=" ")
                    row_total += level_time
            print(" {:12f}".format(row_total))

        print()
        self.timer.show_timers()
