import numpy as np

from pfasst import time_precision
from pfasst.encap.encapsulation import Encapsulation, EncapFactory, EncapType
from pfasst.interfaces import ICommunicator, PfasstValueError


class VectorEncapsulation(Encapsulation):
    """
    a flat numpy vector.  states travel down the pipeline: send goes to
    rank+1, recv reads from rank-1, broadcast is rooted at the last rank
    """
    def __init__(self, size, dtype=float):
        self.data = np.zeros(size, dtype=dtype)

    def __len__(self):
        return len(self.data)

    def __getitem__(self, item):
        return self.data[item]

    def __setitem__(self, key, value):
        self.data[key] = value

    def __array__(self, dtype=None, copy=None):
        array = self.data if dtype is None else self.data.astype(dtype)
        # np.array(state) passes copy=True
        return array.copy() if copy else array

    def __repr__(self):
        return "VectorEncapsulation({})".format(self.data)

    @property
    def shape(self):
        return self.data.shape

    def _check_compatible(self, other, operation):
        if not isinstance(other, VectorEncapsulation):
            raise PfasstValueError("{}: expected a VectorEncapsulation, got {}".format(operation, type(other)))
        if other.shape != self.shape:
            raise PfasstValueError("{}: shape {} does not match {}".format(operation, other.shape, self.shape))

    def zero(self):
        self.data.fill(0.0)

    def copy(self, other):
        self._check_compatible(other, "copy")
        self.data[:] = other.data

    def saxpy(self, a, x):
        self._check_compatible(x, "saxpy")
        self.data += a * x.data

    def norm0(self):
        if self.data.size == 0:
            return time_precision(0.0)
        return time_precision(np.max(np.abs(self.data)))

    def send(self, comm, tag, blocking):
        assert isinstance(comm, ICommunicator)
        if comm.rank() == comm.size() - 1:
            return
        comm.send(self.data, comm.rank() + 1, tag, blocking)

    def recv(self, comm, tag, blocking):
        """
        :return: True if new values were stored, a non-blocking recv returns False
            when nothing has arrived yet
        """
        assert isinstance(comm, ICommunicator)
        if comm.rank() == 0:
            return False
        payload = comm.recv(comm.rank() - 1, tag, blocking)
        if payload is None:
            return False
        if np.shape(payload) != self.shape:
            raise PfasstValueError("recv: shape {} does not match {}".format(np.shape(payload), self.shape))
        self.data[:] = payload
        return True

    def broadcast(self, comm):
        assert isinstance(comm, ICommunicator)
        self.data[:] = comm.broadcast(self.data, comm.size() - 1)


class VectorFactory(EncapFactory):
    def __init__(self, size, dtype=float):
        self.size = size
        self.dtype = dtype

    def create(self, kind):
        if not EncapType.valid(kind):
            raise PfasstValueError("unknown encapsulation type {}".format(kind))
        return VectorEncapsulation(self.size, dtype=self.dtype)
