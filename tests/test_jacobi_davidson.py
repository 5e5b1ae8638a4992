import numpy as np
import pytest

from conftest import lowest_positive_eigenvalues, quadratic_root, random_pencil, tridiagonal
from nleigen import (ConvergenceWarning, CorrectionSolver, CorrectionSolveWarning, FatalPhysicsError,
                     NonlinearJacobiDavidsonSolver, Problem, SolverCtx, SolverStatus)
from nleigen.operators import effective_stiffness, freq_derivative_mass, generalized_mass


def solve(problem, **config):
    config.setdefault("verbose", False)
    solver = NonlinearJacobiDavidsonSolver(problem, config)
    return solver.solve()


def test_linear_pencil_reduction(linear_2x2):
    solution = solve(linear_2x2)
    M0 = linear_2x2.masses[0]

    assert solution.filled == 2
    assert solution.omega[0] == pytest.approx(3.0 - np.sqrt(2.0), abs=1e-9)
    assert solution.omega[1] == pytest.approx(3.0 + np.sqrt(2.0), abs=1e-9)
    for i in range(2):
        phi = solution.phi[:, i]
        assert phi @ M0 @ phi == pytest.approx(1.0, abs=1e-9)
        assert np.linalg.norm(effective_stiffness(linear_2x2, solution.omega[i]) @ phi) < 1e-8
        assert solution.reports[i].converged


def test_linear_3x3_recovers_spectrum(linear_3x3):
    solution = solve(linear_3x3)
    expected = [2.0 - np.sqrt(2.0), 2.0, 2.0 + np.sqrt(2.0)]
    assert np.allclose(solution.omega, expected, atol=1e-9)


def test_quadratic_mass_matches_closed_form(quadratic_3x3):
    solution = solve(quadratic_3x3)
    mu = np.array([2.0 - np.sqrt(2.0), 2.0, 2.0 + np.sqrt(2.0)])
    assert np.allclose(solution.omega, quadratic_root(mu), atol=1e-9)
    assert all(report.converged for report in solution.reports)


@pytest.mark.parametrize("fixture", ["quadratic_3x3", "coupled_quadratic_4x4"])
def test_mass_orthogonality_and_normalization(fixture, request):
    problem = request.getfixturevalue(fixture)
    solution = solve(problem)
    omega, phi = solution.omega, solution.phi

    for i in range(problem.nev):
        Mn = freq_derivative_mass(problem, omega[i])
        assert phi[:, i] @ Mn @ phi[:, i] == pytest.approx(1.0, abs=1e-9)
        assert np.linalg.norm(effective_stiffness(problem, omega[i]) @ phi[:, i]) < 1e-8
        for j in range(problem.nev):
            if i != j:
                Mij = generalized_mass(problem, omega[i], omega[j])
                assert abs(phi[:, i] @ Mij @ phi[:, j]) < 1e-6


def test_coupled_quadratic_finds_distinct_modes(coupled_quadratic_4x4):
    solution = solve(coupled_quadratic_4x4)
    assert len(set(np.round(solution.omega, 6))) == 3
    assert np.all(solution.omega > 0.0)


def test_monotone_seeding(quadratic_3x3):
    solution = solve(quadratic_3x3, initial_omega=0.25)
    assert solution.reports[0].seed == 0.25
    for i in range(1, quadratic_3x3.nev):
        assert solution.reports[i].seed == solution.omega[i - 1]


def test_iteration_cap_warns_and_continues(linear_3x3):
    with pytest.warns(ConvergenceWarning):
        solution = solve(linear_3x3, max_iterations=1)

    assert solution.filled == 3
    first = solution.reports[0]
    assert not first.converged
    assert first.iterations == 2
    assert len(first.history) == 2
    # the unconverged estimate is still kept
    assert np.isfinite(solution.omega).all()
    assert solution.omega[0] > 0.0


def test_fatal_physics_stops_the_run():
    problem = Problem(stiffness=np.eye(2), masses=(-np.eye(2),), nev=2)
    solver = NonlinearJacobiDavidsonSolver(problem, {"verbose": False})
    with pytest.raises(FatalPhysicsError) as excinfo:
        solver.solve()

    assert excinfo.value.index == 0
    assert excinfo.value.ptmp < 0.0
    assert solver.solution.filled == 0
    assert solver.solution.reports == []


def test_zero_eigenpairs_requested():
    problem = Problem(stiffness=tridiagonal(3), masses=(np.eye(3),), nev=0)
    solution = solve(problem)
    assert solution.omega.shape == (0,)
    assert solution.phi.shape == (3, 0)
    assert solution.filled == 0
    assert solution.reports == []


def test_history_records_each_iteration(linear_2x2):
    solution = solve(linear_2x2)
    for report in solution.reports:
        assert report.iterations == len(report.history)
        assert [rec.iteration for rec in report.history] == list(range(1, report.iterations + 1))
        assert report.history[-1].omega == solution.omega[report.index]
        assert report.history[-1].rel_error <= 1e-12
        assert report.history[0].rel_error > 1e-12


class ReportsFailure(CorrectionSolver):
    def solve(self, A, b):
        x, status = super().solve(A, b)
        return x, SolverStatus(converged=False, reason="DIVERGED_ITS",
                               iterations=status.iterations, residual_norm=status.residual_norm)


def test_correction_solve_failure_is_recoverable(linear_2x2):
    solver = NonlinearJacobiDavidsonSolver(linear_2x2, solverctx=SolverCtx(verbose=False),
                                           correction_solver=ReportsFailure())
    with pytest.warns(CorrectionSolveWarning):
        solution = solver.solve()

    assert solution.filled == 2
    assert solution.reports[0].solver_failures == solution.reports[0].iterations
    assert solution.omega[0] == pytest.approx(3.0 - np.sqrt(2.0), abs=1e-9)


def test_custom_start_vector(quadratic_3x3):
    solution = solve(quadratic_3x3, start_vector=[1.0, 1.0, 0.5])
    mu = 2.0 - np.sqrt(2.0)
    assert solution.omega[0] == pytest.approx(quadratic_root(mu), abs=1e-9)


def test_start_vector_shape_is_checked(quadratic_3x3):
    with pytest.raises(ValueError):
        solve(quadratic_3x3, start_vector=[1.0, 2.0])


def test_solve_twice_gives_same_result(linear_2x2):
    solver = NonlinearJacobiDavidsonSolver(linear_2x2, {"verbose": False})
    first = solver.solve().omega.copy()
    second = solver.solve()
    assert np.array_equal(first, second.omega)
    assert len(second.reports) == 2



def test_summary_table_lists_every_eigenvalue(linear_2x2):
    solver = NonlinearJacobiDavidsonSolver(linear_2x2, {"verbose": False})
    solution = solver.solve()
    table = solver.summary()
    assert "converged" in table
    assert f"{solution.omega[1]:.12e}" in table


@pytest.mark.parametrize("seed", [0, 3, 9, 17, 42])
def test_random_linear_pencil_gives_lowest_eigenpairs(seed):
    problem = random_pencil(seed)
    solution = solve(problem, max_iterations=50)

    assert all(report.converged for report in solution.reports)
    assert np.allclose(solution.omega, lowest_positive_eigenvalues(problem), rtol=1e-8)


@pytest.mark.parametrize("seed", [1, 5, 11])
def test_random_quadratic_pencil_matches_companion_form(seed):
    problem = random_pencil(seed, quadratic=0.2)
    solution = solve(problem, max_iterations=50)

    assert all(report.converged for report in solution.reports)
    assert np.allclose(solution.omega, lowest_positive_eigenvalues(problem), rtol=1e-8)
    for i in range(problem.nev):
        assert np.linalg.norm(effective_stiffness(problem, solution.omega[i]) @ solution.phi[:, i]) < 1e-8


def test_start_vector_near_highest_mode_still_finds_lowest(quadratic_3x3):
    v0 = np.array([1.0, np.sqrt(2.0), 1.0])
    v2 = np.array([1.0, -np.sqrt(2.0), 1.0])
    solution = solve(quadratic_3x3, start_vector=v2 + 1e-3 * v0)

    mu = np.array([2.0 - np.sqrt(2.0), 2.0, 2.0 + np.sqrt(2.0)])
    assert np.allclose(solution.omega, quadratic_root(mu), atol=1e-9)


def test_small_search_space_restarts(linear_3x3):
    solution = solve(linear_3x3, max_subspace_dim=2, max_iterations=50)
    expected = [2.0 - np.sqrt(2.0), 2.0, 2.0 + np.sqrt(2.0)]
    assert np.allclose(solution.omega, expected, atol=1e-9)
    assert all(report.converged for report in solution.reports)
