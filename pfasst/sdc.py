import logging

from pfasst import config
from pfasst.controller import Controller


class SDC(Controller):
    """
    single level spectral deferred corrections: predict once per step,
    then sweep until the sweeper converges or the iteration cap is hit
    """
    def run(self):
        sweeper = self.get_finest()

        while self.steps.valid():
            initial = self.get_step() == 0
            logging.debug("SDC step {} time {}".format(self.get_step(), self.get_time()))

            for iteration in self.iterations:
                if iteration == 0:
                    with sweeper.timer("predict"):
                        sweeper.predict(initial)
                    sweeper.post_predict()
                else:
                    with sweeper.timer("sweep"):
                        sweeper.sweep()
                    sweeper.post_sweep()

                if sweeper.converged():
                    logging.debug("SDC step {} converged after iteration {}".format(self.get_step(), iteration))
                    break

            sweeper.post_step()
            if self.get_step() + 1 < self.steps.n:
                sweeper.advance()
            self.advance_time()

        if config.get_value('verbose', False):
            self.show_timing_information()
