import numpy as np

from pfasst.interfaces import NotImplementedYet, PfasstValueError


class EncapType(object):
    solution = 0
    function = 1

    @staticmethod
    def valid(kind):
        return kind in (EncapType.solution, EncapType.function)


class Encapsulation(object):
    """
    an element of the solution vector space.  storage belongs entirely to
    subclasses, the core only needs zero, copy, saxpy and norm0.

    every correction applied by a sweeper is a sequence of saxpy calls,
    mat_apply batches them for a whole set of nodes
    """

    def post(self, comm, tag):
        pass

    def send(self, comm, tag, blocking):
        raise NotImplementedYet("pfasst")

    def recv(self, comm, tag, blocking):
        raise NotImplementedYet("pfasst")

    def broadcast(self, comm):
        raise NotImplementedYet("pfasst")

    def zero(self):
        raise NotImplementedYet("encap")

    def copy(self, other):
        raise NotImplementedYet("encap")

    def norm0(self):
        raise NotImplementedYet("norm0")

    def saxpy(self, a, x):
        """
        this <- this + a * x
        :param a: scalar of pfasst.time_precision
        :param x: encapsulation created by the same factory
        :return:
        """
        raise NotImplementedYet("encap")

    def mat_apply(self, dst, a, mat, src, zero=True):
        return mat_apply(dst, a, mat, src, zero=zero)


def mat_apply(dst, a, mat, src, zero=True):
    """
    dst[n] <- dst[n] + a * sum_m mat[n, m] * src[m]

    terms with mat[n, m] == 0 are skipped, rows are accumulated in order
    n = 0.., and within a row in order m = 0.., so results are reproducible.

    :param dst: list of encapsulations receiving the result
    :param a: scalar applied to every entry of mat
    :param mat: matrix of shape (len(dst), len(src))
    :param src: list of encapsulations
    :param zero: zero every dst[n] before accumulating
    :return:
    """
    mat = np.asarray(mat)
    ndst, nsrc = len(dst), len(src)
    shape = mat.shape
    if len(shape) != 2 or shape[0] != ndst or shape[1] != nsrc:
        raise PfasstValueError("mat_apply: matrix shape {} does not match {} dst x {} src".format(
            shape, ndst, nsrc))

    if zero:
        for element in dst:
            element.zero()

    for n in range(ndst):
        for m in range(nsrc):
            s = mat[n, m]
            if s != 0.0:
                dst[n].saxpy(a * s, src[m])


class EncapFactory(object):
    """
    creates encapsulations of one fixed shape, everything it creates
    is a valid operand for everything else it creates
    """
    def create(self, kind):
        raise NotImplementedYet("encap")
