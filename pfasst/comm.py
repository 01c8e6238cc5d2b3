"""
in-process reference transport: a fixed number of ranks living in one
process (driven serially or one thread per rank) that share a status
board and tagged mailboxes.

convergence flags are stamped with the step-block epoch of the rank that
wrote them.  a reader only trusts a flag written in its own epoch, anything
else reads as "not converged", which can delay a stop but never cause an
early one
"""
import collections
import copy
import logging
import threading

from pfasst.interfaces import ICommunicator, IStatus, CommunicationError


class InProcessWorld(object):
    def __init__(self, size):
        assert isinstance(size, int) and size >= 1, "world size must be a positive int, got {}".format(size)

        self.size = size
        self.condition = threading.Condition()
        self.flags = [(None, False) for _ in range(size)]
        self.mailboxes = collections.defaultdict(collections.deque)
        self.broadcasts = {}

    def communicators(self):
        return [InProcessCommunicator(self, rank) for rank in range(self.size)]

    def write_flag(self, rank, epoch, converged):
        with self.condition:
            self.flags[rank] = (epoch, converged)
            self.condition.notify_all()

    def read_flag(self, rank):
        with self.condition:
            return self.flags[rank]


class InProcessCommunicator(ICommunicator):
    def __init__(self, world, rank):
        super(InProcessCommunicator, self).__init__()
        assert isinstance(world, InProcessWorld)
        assert 0 <= rank < world.size, "rank {} outside of world of size {}".format(rank, world.size)

        self.world = world
        self._rank = rank
        self.broadcast_counts = collections.defaultdict(int)

    def size(self):
        return self.world.size

    def rank(self):
        return self._rank

    def fatal_error(self, msg):
        logging.error("rank {}: {}".format(self._rank, msg))
        raise CommunicationError("rank {}: {}".format(self._rank, msg))

    def _check_rank(self, rank):
        if not 0 <= rank < self.world.size:
            self.fatal_error("rank {} outside of world of size {}".format(rank, self.world.size))

    def send(self, obj, dest, tag, blocking=True):
        """
        buffered send, the payload is deep copied so the sender may reuse its
        storage as soon as this returns.  blocking and non-blocking sends
        therefore both complete immediately
        """
        self._check_rank(dest)
        payload = copy.deepcopy(obj)
        with self.world.condition:
            self.world.mailboxes[(self._rank, dest, tag)].append(payload)
            self.world.condition.notify_all()
        logging.debug("rank {} sent tag {} to rank {}".format(self._rank, tag, dest))

    def probe(self, source, tag):
        self._check_rank(source)
        with self.world.condition:
            return len(self.world.mailboxes[(source, self._rank, tag)]) > 0

    def recv(self, source, tag, blocking=True, timeout=None):
        """
        :param source: sending rank
        :param tag: message tag
        :param blocking: wait for the message, otherwise return None when nothing has arrived
        :param timeout: seconds to wait when blocking, None waits forever
        :return: the payload
        """
        self._check_rank(source)
        key = (source, self._rank, tag)
        with self.world.condition:
            box = self.world.mailboxes[key]
            if blocking:
                if not self.world.condition.wait_for(lambda: len(box) > 0, timeout=timeout):
                    self.fatal_error("timed out waiting for tag {} from rank {}".format(tag, source))
            elif not box:
                return None
            return box.popleft()

    def broadcast(self, obj, root, timeout=None):
        """
        every rank calls broadcast with the same root, the root's obj is returned everywhere
        """
        self._check_rank(root)
        sequence = self.broadcast_counts[root]
        self.broadcast_counts[root] += 1
        key = (root, sequence)

        with self.world.condition:
            if self._rank == root:
                self.world.broadcasts[key] = [copy.deepcopy(obj), self.world.size - 1]
                self.world.condition.notify_all()
                payload = obj
            else:
                if not self.world.condition.wait_for(lambda: key in self.world.broadcasts, timeout=timeout):
                    self.fatal_error("timed out waiting for broadcast {} from rank {}".format(sequence, root))
                entry = self.world.broadcasts[key]
                payload = copy.deepcopy(entry[0])
                entry[1] -= 1
            if self.world.broadcasts[key][1] == 0:
                del self.world.broadcasts[key]
        return payload


class InProcessStatus(IStatus):
    def __init__(self, comm=None):
        super(InProcessStatus, self).__init__()
        self.epoch = 0
        if comm is not None:
            self.set_comm(comm)

    def set_comm(self, comm):
        assert isinstance(comm, InProcessCommunicator), "InProcessStatus needs an InProcessCommunicator"
        super(InProcessStatus, self).set_comm(comm)
        comm.status = self

    def clear(self):
        """
        start a new step block, all earlier flags become stale
        """
        self.epoch += 1
        self.comm.world.write_flag(self.comm.rank(), self.epoch, False)

    def set_converged(self, converged):
        self.comm.world.write_flag(self.comm.rank(), self.epoch, bool(converged))

    def get_converged(self, rank):
        assert 0 <= rank < self.comm.size(), "rank {} outside of world of size {}".format(rank, self.comm.size())
        epoch, converged = self.comm.world.read_flag(rank)
        return converged and epoch == self.epoch

    # the board is shared memory, flags are visible as soon as they are written
    def post(self, tag):
        pass

    def send(self, tag):
        pass

    def recv(self, tag):
        pass
