import csv
from pathlib import Path

import numpy as np

from .errors import FatalInputError
from .problem_ctx import Problem


def read_problem(filepath):
    '''
    Read a problem file: one ignored header line, then "n m r", the
    stiffness matrix K0 and the m mass matrices, all row-major and
    whitespace separated.
    '''
    filepath = Path(filepath)
    try:
        with open(filepath, "r") as fid:
            fid.readline()
            tokens = fid.read().split()
    except OSError as e:
        raise FatalInputError(f"Error in opening the file {filepath}: {e}") from e

    try:
        values = np.array(tokens, dtype=float)
    except ValueError as e:
        raise FatalInputError(f"Non-numeric entry in {filepath}: {e}") from e

    if values.size < 3:
        raise FatalInputError(f"{filepath} does not contain the sizes 'n m r'")
    sizes = values[:3]
    if np.any(sizes != np.round(sizes)):
        raise FatalInputError(f"Sizes must be integers, got {sizes.tolist()}")
    n, m, r = (int(v) for v in sizes)
    if n < 1 or m < 1 or r < 0:
        raise FatalInputError(f"Invalid sizes n = {n}, m = {m}, r = {r}")

    needed = 3 + (m + 1) * n * n
    if values.size < needed:
        raise FatalInputError(f"{filepath} holds {values.size - 3} matrix entries, expected {needed - 3}")

    data = values[3:needed].reshape(m + 1, n, n)
    return Problem(stiffness=data[0], masses=tuple(data[1:]), nev=r)


def write_problem(problem, filepath, header="nleigen problem"):
    '''Write a problem in the layout read_problem expects.'''
    filepath = Path(filepath)
    try:
        with open(filepath, "w") as out:
            out.write(f"{header}\n{problem.dim} {problem.nmass} {problem.nev}\n")
            for mat in (problem.stiffness, *problem.masses):
                np.savetxt(out, mat, fmt="%.17e")
    except OSError as e:
        raise FatalInputError(f"Error in opening the file {filepath}: {e}") from e
    return filepath


def write_results(solution, filepath):
    '''Write Phi.dat and Omega.dat next to the problem file.'''
    directory = Path(filepath).parent
    phi_path = directory / "Phi.dat"
    omega_path = directory / "Omega.dat"
    n, r = solution.phi.shape
    try:
        with open(phi_path, "w") as out:
            out.write(f"{n} {r}\n")
            if r > 0:
                np.savetxt(out, solution.phi, fmt="%.12e")
        with open(omega_path, "w") as out:
            out.write(f"{r}\n")
            if r > 0:
                np.savetxt(out, solution.omega, fmt="%.12e")
    except OSError as e:
        raise FatalInputError(f"Error in opening the file: {e}") from e
    return phi_path, omega_path


def write_history(solution, file_path):
    headers = ("index", "iteration", "omega", "rel_error", "ksp_iterations", "ksp_converged")
    rows = [(report.index, rec.iteration, rec.omega, rec.rel_error, rec.ksp_iterations, int(rec.ksp_converged))
            for report in solution.reports for rec in report.history]
    try:
        with open(file_path, "w", newline="") as file:
            w = csv.writer(file)
            w.writerow(headers)
            w.writerows(rows)
    except OSError as e:
        raise FatalInputError(f"Error in opening the file {file_path}: {e}") from e
    return Path(file_path)
