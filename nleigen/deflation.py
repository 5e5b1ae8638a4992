import numpy as np

from .operators import generalized_mass


class DeflationBasis:
    '''
    Mass weighted deflation directions, one column per eigen-index.

    Column ``is`` is the image of Phi[:, is] under the generalized mass
    operator between the current frequency and omega[is], projected against
    columns 0..is-1 and scaled to unit Euclidean norm. A true eigenvector
    for the current index is Euclidean-orthogonal to every earlier column.
    '''

    def __init__(self, problem, nev=None):
        self.problem = problem
        nev = problem.nev if nev is None else nev
        self.B = np.zeros((problem.dim, nev))

    def _orthonormalize(self, candidate, ncols):
        b = candidate.copy()
        for el in range(ncols):
            b -= self.B[:, el] * (self.B[:, el] @ b)
        nrm = np.sqrt(b @ b)
        if nrm > 0:
            b /= nrm
        return b

    def extend(self, index, phi, omega):
        # Columns 0..index-1 are rebuilt, since they depend on omega[index]
        for s in range(index):
            candidate = generalized_mass(self.problem, omega[index], omega[s]) @ phi[:, s]
            self.B[:, s] = self._orthonormalize(candidate, s)

    def attach(self, index, phi_i, omega_i):
        # The current index's own direction: M(w_i, w_i) phi_i
        candidate = generalized_mass(self.problem, omega_i, omega_i) @ phi_i
        self.B[:, index] = self._orthonormalize(candidate, index)

    def project_vector(self, v, index):
        v = v.copy()
        for s in range(index + 1):
            v -= self.B[:, s] * (self.B[:, s] @ v)
        return v

    def project_residual_vector(self, phi_i, index):
        phi_i = phi_i.copy()
        for s in range(index):
            phi_i -= self.B[:, s] * (self.B[:, s] @ phi_i)
        return phi_i

    def project_rows(self, Keff, index):
        for ii in range(index):
            b = self.B[:, ii]
            Keff -= np.outer(b, b @ Keff)
        return Keff

    def project_operator(self, Keff, index):
        # Known directions are removed and mapped onto themselves
        for ii in range(index):
            b = self.B[:, ii]
            Keff += np.outer(b - Keff @ b, b)
        return Keff
