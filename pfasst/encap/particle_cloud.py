import numpy as np

from pfasst import time_precision
from pfasst.encap.encapsulation import Encapsulation, EncapFactory, EncapType
from pfasst.interfaces import PfasstValueError


class Particle(object):
    def __init__(self, dim=3, charge=1.0, mass=1.0, position=None, velocity=None):
        self.position = np.zeros(dim) if position is None else np.array(position, dtype=float)
        self.velocity = np.zeros(dim) if velocity is None else np.array(velocity, dtype=float)
        assert self.position.shape == (dim,) and self.velocity.shape == (dim,), \
            "particle position and velocity must have {} components".format(dim)
        self.charge = charge
        self.mass = mass

    def dim(self):
        return len(self.position)

    def __repr__(self):
        return "Particle(pos={}, vel={}, charge={}, mass={})".format(
            self.position, self.velocity, self.charge, self.mass)


class ParticleCloud(Encapsulation):
    """
    a cloud of charged particles, positions and velocities are (num_particles x dim).
    the vector space operations act on positions and velocities,
    charges and masses are carried along by copy
    """
    def __init__(self, num_particles=0, dim=3, default_charge=1.0, default_mass=1.0):
        self._dim = dim
        self.default_charge = default_charge
        self.default_mass = default_mass
        self.positions = np.zeros((num_particles, dim))
        self.velocities = np.zeros((num_particles, dim))
        self.charges = np.full(num_particles, default_charge, dtype=float)
        self.masses = np.full(num_particles, default_mass, dtype=float)

    def size(self):
        return self.positions.shape[0]

    def dim(self):
        return self._dim

    def __len__(self):
        return self.size()

    def _check_compatible(self, other, operation):
        if not isinstance(other, ParticleCloud):
            raise PfasstValueError("{}: expected a ParticleCloud, got {}".format(operation, type(other)))
        if other.size() != self.size() or other.dim() != self.dim():
            raise PfasstValueError("{}: cloud of {}x{} does not match {}x{}".format(
                operation, other.size(), other.dim(), self.size(), self.dim()))

    def zero(self):
        self.positions.fill(0.0)
        self.velocities.fill(0.0)
        self.charges.fill(self.default_charge)
        self.masses.fill(self.default_mass)

    def copy(self, other):
        self._check_compatible(other, "copy")
        self.positions[:] = other.positions
        self.velocities[:] = other.velocities
        self.charges[:] = other.charges
        self.masses[:] = other.masses

    def saxpy(self, a, x):
        self._check_compatible(x, "saxpy")
        self.positions += a * x.positions
        self.velocities += a * x.velocities

    def norm0(self):
        if self.size() == 0:
            return time_precision(0.0)
        return time_precision(max(np.max(np.abs(self.positions)), np.max(np.abs(self.velocities))))

    def extend(self, new_size):
        """
        grow the cloud to new_size particles, new particles are at rest at the origin
        """
        assert new_size >= self.size(), "extend cannot shrink a cloud of {} to {}".format(self.size(), new_size)
        extra = new_size - self.size()
        self.positions = np.vstack([self.positions, np.zeros((extra, self._dim))])
        self.velocities = np.vstack([self.velocities, np.zeros((extra, self._dim))])
        self.charges = np.concatenate([self.charges, np.full(extra, self.default_charge, dtype=float)])
        self.masses = np.concatenate([self.masses, np.full(extra, self.default_mass, dtype=float)])

    def erase(self, index):
        self.positions = np.delete(self.positions, index, axis=0)
        self.velocities = np.delete(self.velocities, index, axis=0)
        self.charges = np.delete(self.charges, index)
        self.masses = np.delete(self.masses, index)

    def insert(self, pos, particle):
        assert isinstance(particle, Particle)
        if particle.dim() != self._dim:
            raise PfasstValueError("particle of dim {} cannot join a cloud of dim {}".format(particle.dim(), self._dim))
        self.positions = np.insert(self.positions, pos, particle.position, axis=0)
        self.velocities = np.insert(self.velocities, pos, particle.velocity, axis=0)
        self.charges = np.insert(self.charges, pos, particle.charge)
        self.masses = np.insert(self.masses, pos, particle.mass)

    def push_back(self, particle):
        self.insert(self.size(), particle)

    def center_of_mass(self):
        if self.size() == 0:
            return np.zeros(self._dim)
        return np.mean(self.positions, axis=0)

    def at(self, index):
        if not -self.size() <= index < self.size():
            raise IndexError("particle index {} out of range for cloud of {}".format(index, self.size()))
        return Particle(
            dim=self._dim,
            charge=self.charges[index],
            mass=self.masses[index],
            position=self.positions[index],
            velocity=self.velocities[index],
        )

    __getitem__ = at

    def particles(self):
        # expensive, builds a Particle for every member
        return [self.at(index) for index in range(self.size())]

    def __repr__(self):
        return "ParticleCloud({} particles, dim {})".format(self.size(), self._dim)


class ParticleCloudFactory(EncapFactory):
    def __init__(self, num_particles, dim, default_charge=1.0, default_mass=1.0):
        self.num_particles = num_particles
        self.dim = dim
        self.default_charge = default_charge
        self.default_mass = default_mass

    def create(self, kind):
        if not EncapType.valid(kind):
            raise PfasstValueError("unknown encapsulation type {}".format(kind))
        return ParticleCloud(self.num_particles, self.dim, self.default_charge, self.default_mass)
