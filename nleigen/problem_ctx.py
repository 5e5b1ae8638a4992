from dataclasses import dataclass, field

import numpy as np

from .errors import FatalInputError


@dataclass(frozen=True, kw_only=True)
class Problem:
    '''
    Stiffness matrix K0 and the polynomial mass expansion M_0 ... M_{m-1}
    of T(w) = K0 - sum_j w^(j+1) M_j, plus the number of eigenpairs wanted.
    Read-only once built.
    '''
    stiffness: np.ndarray
    masses: tuple
    nev: int

    def __post_init__(self):
        K0 = np.array(self.stiffness, dtype=float)
        if K0.ndim != 2 or K0.shape[0] != K0.shape[1] or K0.shape[0] < 1:
            raise FatalInputError(f"Stiffness matrix must be square and non-empty, got shape {K0.shape}")
        n = K0.shape[0]
        if len(self.masses) < 1:
            raise FatalInputError("At least one mass matrix is required")

        masses = []
        for j, Mj in enumerate(self.masses):
            Mj = np.array(Mj, dtype=float)
            if Mj.shape != (n, n):
                raise FatalInputError(f"Mass matrix M_{j} has shape {Mj.shape}, expected {(n, n)}")
            Mj.setflags(write=False)
            masses.append(Mj)
        K0.setflags(write=False)

        if not 0 <= self.nev <= n:
            raise FatalInputError(f"Number of eigenvalues must lie in [0, {n}], got {self.nev}")

        # frozen dataclass: bypass __setattr__ to store the normalized arrays
        object.__setattr__(self, "stiffness", K0)
        object.__setattr__(self, "masses", tuple(masses))
        object.__setattr__(self, "nev", int(self.nev))

    @property
    def dim(self):
        return self.stiffness.shape[0]

    @property
    def nmass(self):
        return len(self.masses)


@dataclass
class IterationRecord:
    iteration: int
    omega: float
    rel_error: float
    ksp_iterations: int
    ksp_converged: bool


@dataclass
class EigenReport:
    index: int
    seed: float
    iterations: int = 0
    converged: bool = False
    solver_failures: int = 0
    history: list = field(default_factory=list)


class EigenSolution:
    '''
    Omega and Phi preallocated to (n, r). Columns are accepted strictly
    left to right; ``filled`` counts the accepted ones.
    '''

    def __init__(self, dim: int, nev: int):
        self.omega = np.zeros(nev)
        self.phi = np.zeros((dim, nev))
        self.filled = 0
        self.reports = []

    @property
    def nev(self):
        return self.omega.shape[0]

    def accept(self, index: int, report: EigenReport):
        if index != self.filled:
            raise ValueError(f"Eigenvalue #{index} accepted out of order (filled = {self.filled})")
        self.reports.append(report)
        self.filled += 1

    @property
    def accepted_omega(self):
        return self.omega[:self.filled]

    @property
    def accepted_phi(self):
        return self.phi[:, :self.filled]
