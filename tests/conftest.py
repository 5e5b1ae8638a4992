import matplotlib
matplotlib.use("Agg")

import numpy as np
import pytest

from nleigen import Problem

QUADRATIC_COEFF = 0.1


def tridiagonal(n):
    return 2.0 * np.eye(n) - np.eye(n, k=1) - np.eye(n, k=-1)


def quadratic_root(mu, c=QUADRATIC_COEFF):
    # w + c w^2 = mu
    return (-1.0 + np.sqrt(1.0 + 4.0 * c * mu)) / (2.0 * c)


def random_spd(rng, n, diagonal_shift):
    A = rng.standard_normal((n, n))
    return A @ A.T + diagonal_shift * np.eye(n)


def random_pencil(seed, n=8, nev=4, quadratic=0.0):
    '''Dense SPD K0 and M0, plus an SPD w^2 term when quadratic > 0.'''
    rng = np.random.default_rng(seed)
    K0 = random_spd(rng, n, n)
    masses = [random_spd(rng, n, n)]
    if quadratic > 0.0:
        masses.append(quadratic * random_spd(rng, n, n) / n)
    return Problem(stiffness=K0, masses=tuple(masses), nev=nev)


def lowest_positive_eigenvalues(problem):
    '''Reference eigenvalues of an m <= 2 problem from dense linear algebra.'''
    n = problem.dim
    K0, M0 = problem.stiffness, problem.masses[0]
    if problem.nmass == 1:
        L = np.linalg.cholesky(M0)
        C = np.linalg.solve(L, np.linalg.solve(L, K0).T)
        return np.linalg.eigvalsh(0.5 * (C + C.T))[:problem.nev]

    # Companion form: w [I 0; 0 M1] [x; w x] = [0 I; K0 -M0] [x; w x]
    A = np.block([[np.zeros((n, n)), np.eye(n)], [K0, -M0]])
    B = np.block([[np.eye(n), np.zeros((n, n))], [np.zeros((n, n)), problem.masses[1]]])
    ev = np.linalg.eigvals(np.linalg.solve(B, A))
    # the second branch of roots is negative
    return np.sort(ev.real[ev.real > 0.0])[:problem.nev]


@pytest.fixture
def linear_2x2():
    '''K0 - w M0 with eigenvalues 3 -/+ sqrt(2).'''
    K0 = np.array([[6.0, -2.0], [-2.0, 3.0]])
    M0 = np.diag([2.0, 1.0])
    return Problem(stiffness=K0, masses=(M0,), nev=2)


@pytest.fixture
def linear_3x3():
    return Problem(stiffness=tridiagonal(3), masses=(np.eye(3),), nev=3)


@pytest.fixture
def quadratic_3x3():
    '''K0 - w I - 0.1 w^2 I; eigenvalues solve w + 0.1 w^2 = eig(K0).'''
    return Problem(stiffness=tridiagonal(3), masses=(np.eye(3), QUADRATIC_COEFF * np.eye(3)), nev=3)


@pytest.fixture
def coupled_quadratic_4x4():
    K0 = 4.0 * tridiagonal(4) + np.diag([0.0, 0.5, 1.0, 1.5])
    M0 = np.diag([1.0, 1.2, 1.1, 0.9])
    M1 = 0.02 * (np.eye(4) + 0.2 * (np.eye(4, k=1) + np.eye(4, k=-1)))
    return Problem(stiffness=K0, masses=(M0, M1), nev=3)
