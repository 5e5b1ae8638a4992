import warnings

import numpy as np
from petsc4py import PETSc
from tabulate import tabulate

from .correction_solver import CorrectionSolver
from .deflation import DeflationBasis
from .errors import ConvergenceWarning, CorrectionSolveWarning, FatalPhysicsError
from .operators import effective_stiffness, rayleigh_quotient
from .problem_ctx import EigenReport, EigenSolution, IterationRecord, Problem
from .search_space import SearchSpace
from .solver_ctx import SolverCtx


class NonlinearJacobiDavidsonSolver():
    '''
    Solves T(w) phi = 0 with T(w) = K0 - sum_j w^(j+1) M_j for the requested
    number of eigenpairs, one eigen-index at a time, lowest first.

    Each index is seeded with the previous eigenvalue and deflated against
    every mode accepted before it. The corrections span a search space whose
    lowest Ritz pair is the next estimate. The correction equation is shifted
    at the seed until the relative change of omega drops below
    shift_switch_tolerance, and at the current estimate afterwards. The
    eigenvalue is updated with the Rayleigh quotient phi^T Kn phi / phi^T Mn phi
    and each mode is normalized to phi^T Mn phi = 1.
    '''

    def __init__(self, problem: Problem, solver_parameters: dict = None, *, solverctx: SolverCtx = None,
                 correction_solver: CorrectionSolver = None):
        # User input vars
        self.problem = problem
        self.solverctx = solverctx if solverctx is not None else SolverCtx.from_config(solver_parameters)
        if correction_solver is None:
            correction_solver = CorrectionSolver(self.solverctx.correction_solver_parameters)
        self.correction_solver = correction_solver

        # Derived vars
        self.dim = problem.dim
        self.nev = problem.nev
        self.solution = EigenSolution(self.dim, self.nev)
        self.basis = DeflationBasis(problem)
        self.space = SearchSpace(self.dim, self.solverctx.max_subspace_dim)

    def log(self, msg):
        if self.solverctx.verbose:
            PETSc.Sys.Print(msg, flush=True)

    def seed(self, ie):
        s = self.solverctx
        omega = self.solution.omega
        omega[ie] = omega[ie - 1] if ie > 0 else s.initial_omega
        self.solution.phi[:, ie] = s.initial_vector(self.dim)
        self.space = SearchSpace(self.dim, s.max_subspace_dim)
        return EigenReport(index=ie, seed=float(omega[ie]))

    def deflate(self, ie):
        phi = self.solution.phi
        self.basis.extend(ie, phi, self.solution.omega)
        # Orthogonalize phi_ie and the search space against the preceding modes
        if ie > 0:
            phi[:, ie] = self.basis.project_residual_vector(phi[:, ie], ie)
            self.space.deflate(self.basis, ie)

        if self.space.size == 0 and not self.space.expand(phi[:, ie]):
            # The start vector lies in the deflated span; take the unit
            # vector with the largest deflated part instead
            candidates = [self.basis.project_residual_vector(e, ie) for e in np.eye(self.dim)]
            self.space.expand(max(candidates, key=np.linalg.norm))
            phi[:, ie] = self.space.V[:, 0]

    def correct(self, ie, shift):
        omega_i = self.solution.omega[ie]
        phi_i = self.solution.phi[:, ie]

        Keff = effective_stiffness(self.problem, shift)
        rk = -Keff @ phi_i

        # Restrict the correction equation to the complement of the preceding
        # modes and of the current direction M(w_i) phi_i
        self.basis.attach(ie, phi_i, omega_i)
        rk = self.basis.project_vector(rk, ie)
        self.basis.project_rows(Keff, ie + 1)
        self.basis.project_operator(Keff, ie + 1)

        dUk, status = self.correction_solver.solve(Keff, rk)
        dUk = self.basis.project_vector(dUk, ie)
        return dUk, status

    def expand(self, ie, dUk):
        phi_i = self.solution.phi[:, ie]
        if self.space.size >= self.space.max_dim:
            self.space.reset(phi_i)
        return self.space.expand(dUk)

    def extract(self, ie):
        phi = self.solution.phi
        _, ritz_vector = self.space.lowest_ritz_pair(self.problem, self.solution.omega[ie], ie)
        # Keep the orientation of the previous estimate
        if ritz_vector @ phi[:, ie] < 0:
            ritz_vector = -ritz_vector
        phi[:, ie] = ritz_vector

    def rayleigh_update(self, ie):
        phi = self.solution.phi
        theta, PtKP, PtMP = rayleigh_quotient(self.problem, phi[:, ie], self.solution.omega[ie])
        if not PtMP > 0:
            raise FatalPhysicsError(ie, PtMP)
        phi[:, ie] *= 1.0 / np.sqrt(PtMP)
        return theta

    def solve_eigenvalue(self, ie):
        s = self.solverctx
        omega = self.solution.omega
        report = self.seed(ie)

        conv = 1.0
        iterK = 0
        shift = report.seed
        targeting = True
        while True:
            self.deflate(ie)
            dUk, status = self.correct(ie, shift)
            if not status.converged:
                report.solver_failures += 1
                self.log(f"Correction solve not converged ({status.reason}, {status.iterations} its, "
                         f"residual {status.residual_norm:.3e})")
                warnings.warn(f"Correction solve for eigenvalue #{ie} stopped with {status.reason}",
                              CorrectionSolveWarning, stacklevel=3)
            self.expand(ie, dUk)
            self.extract(ie)

            theta = self.rayleigh_update(ie)
            conv = abs(theta - omega[ie]) / abs(theta) if theta != 0.0 else abs(theta - omega[ie])
            self.log(f"iter: {iterK}    rel.error: {conv:.6e}    subspace: {self.space.size}")

            omega[ie] = theta
            iterK += 1
            report.history.append(IterationRecord(iteration=iterK, omega=float(theta), rel_error=float(conv),
                                                  ksp_iterations=status.iterations,
                                                  ksp_converged=status.converged))

            if abs(conv) <= s.tolerance:
                report.converged = True
                break
            if iterK > s.max_iterations:
                self.log(f"Maximum iteration ({s.max_iterations}) reached for eigenvalue #{ie}.")
                warnings.warn(f"Eigenvalue #{ie} did not converge in {iterK} iterations "
                              f"(rel.error {conv:.3e}), keeping the last estimate",
                              ConvergenceWarning, stacklevel=3)
                break

            if targeting and abs(conv) <= s.shift_switch_tolerance:
                targeting = False
                self.log(f"Shift follows omega from iteration {iterK}")
            shift = report.seed if targeting else omega[ie]

        report.iterations = iterK
        return report

    def solve(self):
        self.solution = EigenSolution(self.dim, self.nev)
        self.basis = DeflationBasis(self.problem)
        self.log(f"Solving for {self.nev} eigenvalues (n = {self.dim}, mass terms = {self.problem.nmass}) ...")

        for ie in range(self.nev):
            self.log(f"---------------------------- [EIGENVALUE #{ie}] ----------------------------")
            report = self.solve_eigenvalue(ie)
            self.solution.accept(ie, report)
            self.log(f"{'Eigenvalue #' + str(ie):45s}{'omega:':8s}{self.solution.omega[ie]:20.12e}")

        self.log(self.summary())
        return self.solution

    def summary(self):
        rows = [(r.index, f"{self.solution.omega[r.index]:.12e}", r.iterations,
                 "yes" if r.converged else "no", r.solver_failures)
                for r in self.solution.reports]
        headers = ("#", "omega", "iterations", "converged", "ksp failures")
        return tabulate(rows, headers=headers, tablefmt="fancy_grid")
