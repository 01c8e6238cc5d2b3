"""
abstract contracts shared by every controller: sweepers, transfer operators,
communicators and the per-rank convergence status
"""
import weakref
from abc import ABCMeta, abstractmethod

from pfasst.timer import EventTimer


class NotImplementedYet(NotImplementedError):
    """
    raised by a default implementation that a concrete type was required to override
    """
    def __init__(self, msg):
        super(NotImplementedYet, self).__init__(msg)
        self.msg = msg

    def __str__(self):
        return "Not implemented/supported yet, required for: {}".format(self.msg)


class PfasstValueError(ValueError):
    """
    raised when a domain or shape precondition is violated, e.g. incompatible states
    """
    def __init__(self, msg):
        super(PfasstValueError, self).__init__(msg)
        self.msg = msg

    def __str__(self):
        return "ValueError: {}".format(self.msg)


class CommunicationError(Exception):
    pass


class ICommunicator(metaclass=ABCMeta):
    """
    rank addressable communicator, one per participating rank.
    the actual transport lives in concrete subclasses, see pfasst.comm
    """
    def __init__(self):
        self.status = None

    @abstractmethod
    def size(self):
        pass

    @abstractmethod
    def rank(self):
        pass

    @abstractmethod
    def fatal_error(self, msg):
        pass


class IStatus(metaclass=ABCMeta):
    """
    per rank converged flag and the pipelined keep-iterating decision.

    rank r only ever looks at its own flag and at the flag of rank r-1,
    convergence therefore travels down the pipeline one rank at a time
    """
    def __init__(self):
        self.comm = None

    def set_comm(self, comm):
        assert isinstance(comm, ICommunicator), "status needs an ICommunicator, got {}".format(type(comm))
        self.comm = comm

    @abstractmethod
    def clear(self):
        pass

    @abstractmethod
    def set_converged(self, converged):
        pass

    @abstractmethod
    def get_converged(self, rank):
        pass

    def previous_is_iterating(self):
        """
        :return: True if rank-1 may still send corrected information, always False on rank 0
        """
        rank = self.comm.rank()
        if rank == 0:
            return False
        return not self.get_converged(rank - 1)

    def keep_iterating(self):
        """
        a rank stops only when it and its upstream neighbor have both converged
        :return:
        """
        rank = self.comm.rank()
        if rank == 0:
            return not self.get_converged(0)
        return not self.get_converged(rank) or not self.get_converged(rank - 1)

    def post(self, tag):
        pass

    def send(self, tag):
        raise NotImplementedYet("pfasst")

    def recv(self, tag):
        raise NotImplementedYet("pfasst")


class ISweeper(metaclass=ABCMeta):
    """
    one level of the hierarchy, owns the states of that level and performs
    predictor and corrector passes over them
    """
    def __init__(self):
        self._controller = None
        self.timer = EventTimer(self)

    def set_controller(self, ctrl):
        self._controller = weakref.ref(ctrl)

    def get_controller(self):
        controller = self._controller() if self._controller is not None else None
        assert controller is not None, "sweeper {} has no controller, call Controller.setup() first".format(self)
        return controller

    def set_options(self):
        pass

    def setup(self, coarse=False):
        """
        allocate level local states
        :param coarse: True when this sweeper is not the finest level of its hierarchy
        :return:
        """
        pass

    @abstractmethod
    def predict(self, initial):
        pass

    @abstractmethod
    def sweep(self):
        pass

    @abstractmethod
    def advance(self):
        pass

    def converged(self):
        return False

    def save(self, initial_only=False):
        raise NotImplementedYet("mlsdc/pfasst")

    def spread(self):
        raise NotImplementedYet("pfasst")

    def reevaluate(self, initial_only=False):
        raise NotImplementedYet("mlsdc/pfasst")

    def integrate_end_state(self, dt):
        raise NotImplementedYet("integrate_end_state")

    def post_sweep(self):
        pass

    def post_predict(self):
        pass

    def post_step(self):
        pass

    def post(self, comm, tag):
        pass

    def send(self, comm, tag, blocking):
        raise NotImplementedYet("pfasst")

    def recv(self, comm, tag, blocking):
        raise NotImplementedYet("pfasst")

    def broadcast(self, comm):
        raise NotImplementedYet("pfasst")


class ITransfer(metaclass=ABCMeta):
    """
    moves information between two adjacent levels.
    the transfer stored at level i of a controller connects level i with level i-1
    """
    def interpolate_initial(self, dst, src):
        raise NotImplementedYet("pfasst")

    def restrict_initial(self, dst, src):
        raise NotImplementedYet("pfasst")

    @abstractmethod
    def interpolate(self, dst, src, interp_initial=False):
        pass

    @abstractmethod
    def restrict(self, dst, src, restrict_initial=False):
        pass

    @abstractmethod
    def fas(self, dt, dst, src):
        pass
