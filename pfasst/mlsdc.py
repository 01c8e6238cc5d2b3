import logging

from pfasst import config
from pfasst.controller import Controller


class MLSDC(Controller):
    """
    multi-level SDC, every iteration is one V-cycle from the finest level
    down to the coarsest and back up
    """
    def __init__(self):
        super(MLSDC, self).__init__()
        self.nsweeps = []
        self.predict = True
        self.initial = True
        self.converged = False

    def set_nsweeps(self, nsweeps):
        self.nsweeps = list(nsweeps)

    def set_options(self, all_sweepers=True):
        """
        in addition to the controller options, the nsweeps option sets the
        same sweep count on every level unless set_nsweeps was called
        """
        super(MLSDC, self).set_options(all_sweepers)
        nsweeps = config.get_value('nsweeps')
        if nsweeps is not None and not self.nsweeps:
            self.nsweeps = [nsweeps] * self.nlevels()

    def level_is_coarse(self, level_iter):
        return level_iter < self.finest()

    def setup(self):
        super(MLSDC, self).setup()
        if not self.nsweeps:
            self.nsweeps = [1] * self.nlevels()
        assert len(self.nsweeps) == self.nlevels(), \
            "need a sweep count for each of {} levels, got {}".format(self.nlevels(), self.nsweeps)

    def perform_sweeps(self, level):
        sweeper = self.get_level(level)
        for _ in range(self.nsweeps[level]):
            if self.predict:
                with sweeper.timer("predict"):
                    sweeper.predict(self.initial)
                sweeper.post_predict()
                self.predict = False
            else:
                with sweeper.timer("sweep"):
                    sweeper.sweep()
                sweeper.post_sweep()

    def cycle_down(self, level_iter):
        """
        sweep on this level, then restrict it to the coarser level and
        compute the FAS correction there
        :return: cursor of the coarser level
        """
        fine = level_iter.current()
        coarse = level_iter.coarse()
        transfer = level_iter.transfer()

        self.perform_sweeps(level_iter.level)

        if level_iter == self.finest() and fine.converged():
            self.converged = True
            return level_iter

        with fine.timer("restrict"):
            transfer.restrict(coarse, fine, self.initial)
        with fine.timer("fas"):
            transfer.fas(self.get_time_step(), coarse, fine)
        coarse.save()

        return level_iter - 1

    def cycle_up(self, level_iter):
        """
        interpolate the coarse correction, the finest level is left for the next cycle to sweep
        :return: cursor of the finer level
        """
        fine = level_iter.current()
        coarse = level_iter.coarse()
        transfer = level_iter.transfer()

        with fine.timer("interpolate"):
            transfer.interpolate(fine, coarse)

        if level_iter < self.finest():
            self.perform_sweeps(level_iter.level)

        return level_iter + 1

    def cycle_bottom(self, level_iter):
        self.perform_sweeps(level_iter.level)
        # single level hierarchy, the bottom is also the finest level
        if level_iter == self.finest() and level_iter.current().converged():
            self.converged = True
        return level_iter + 1

    def cycle_v(self, level_iter):
        if level_iter.level == 0:
            return self.cycle_bottom(level_iter)

        level_iter = self.cycle_down(level_iter)
        if self.converged:
            return level_iter

        level_iter = self.cycle_v(level_iter)
        return self.cycle_up(level_iter)

    def run(self):
        while self.steps.valid():
            self.predict = True
            self.initial = self.get_step() == 0
            logging.debug("MLSDC step {} time {}".format(self.get_step(), self.get_time()))

            for iteration in self.iterations:
                self.converged = False
                self.cycle_v(self.finest())
                if self.converged:
                    logging.debug("MLSDC step {} converged after iteration {}".format(self.get_step(), iteration))
                    break

            for level_iter in self.iter_levels(reverse=True):
                level_iter.current().post_step()

            if self.get_step() + 1 < self.steps.n:
                self.get_finest().advance()
            self.advance_time()

        if config.get_value('verbose', False):
            self.show_timing_information()
