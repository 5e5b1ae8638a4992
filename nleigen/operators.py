"""
Frequency dependent operators of T(w) = K0 - sum_j w^(j+1) M_j.

All functions are pure: they read the Problem and return fresh arrays.
"""
import numpy as np


def effective_stiffness(problem, omega):
    Keff = problem.stiffness.copy()
    for jj, Mj in enumerate(problem.masses):
        Keff -= omega**(jj + 1) * Mj
    return Keff


def freq_derivative_stiffness(problem, omega):
    # Numerator of the Rayleigh quotient
    Kn = problem.stiffness.copy()
    for jj in range(1, problem.nmass):
        Kn += jj * omega**(jj + 1) * problem.masses[jj]
    return Kn


def freq_derivative_mass(problem, omega):
    # Denominator of the Rayleigh quotient, equals -dT/dw
    Mn = problem.masses[0].copy()
    for jj in range(1, problem.nmass):
        Mn += (jj + 1) * omega**jj * problem.masses[jj]
    return Mn


def generalized_mass(problem, omega_r, omega_s):
    '''
    Bilinear mass operator between modes at omega_r and omega_s.
    phi_r^T M(omega_r, omega_s) phi_s vanishes for two distinct eigenpairs.
    '''
    Mrs = np.zeros_like(problem.stiffness)
    for jj, Mj in enumerate(problem.masses):
        coeff = sum(omega_r**kk * omega_s**(jj - kk) for kk in range(jj + 1))
        Mrs += coeff * Mj
    return Mrs


def rayleigh_quotient(problem, phi, omega):
    Kn = freq_derivative_stiffness(problem, omega)
    Mn = freq_derivative_mass(problem, omega)
    PtMP = float(phi @ Mn @ phi)
    PtKP = float(phi @ Kn @ phi)
    theta = PtKP / PtMP if PtMP != 0.0 else float("nan")
    return theta, PtKP, PtMP
