"""
Fixed-free chain of springs whose masses stiffen with frequency.

The problem file is written to ./output/spring_chain/spring_chain.dat, so the
same run can be repeated from the command line with

    python -m nleigen output/spring_chain/spring_chain.dat --history --plot

A smaller hand-written input lives in examples/data/three_dof.dat.
"""
from pathlib import Path

import numpy as np

from nleigen import NonlinearJacobiDavidsonSolver, Problem, write_history, write_problem, write_results
from nleigen.plotting import plot_convergence
from nleigen.operators import effective_stiffness

N = 20
k = np.full(N, 1.0e3)
m = np.linspace(1.0, 2.0, N)

K0 = np.zeros((N, N))
for i in range(N):
    K0[i, i] += k[i]
    if i + 1 < N:
        K0[i, i] += k[i + 1]
        K0[i, i + 1] = K0[i + 1, i] = -k[i + 1]
M0 = np.diag(m)
M1 = 1.0e-3 * np.diag(m)        # w^2 term
M2 = 1.0e-6 * np.eye(N)         # w^3 term

problem = Problem(stiffness=K0, masses=(M0, M1, M2), nev=5)

solver_parameters = {
    "tolerance": 1e-12,
    "max_iterations": 30,
    "initial_omega": 0.0,
    "max_subspace_dim": 12,
    "verbose": True,
    "correction_solver_parameters": {"ksp_type": "minres",
                                     "ksp_rtol": 1e-12,
                                     "pc_type": "none"},
}

if __name__ == "__main__":
    output_dir = Path("./output/spring_chain")
    output_dir.mkdir(parents=True, exist_ok=True)
    problem_file = write_problem(problem, output_dir / "spring_chain.dat",
                                 header=f"spring chain, N = {N}, cubic mass expansion")

    solver = NonlinearJacobiDavidsonSolver(problem, solver_parameters)
    solution = solver.solve()

    for i, w in enumerate(solution.omega):
        res = np.linalg.norm(effective_stiffness(problem, w) @ solution.phi[:, i])
        print(f"omega_{i} = {w:.10f}    |T(omega) phi| = {res:.2e}")

    write_results(solution, problem_file)
    write_history(solution, output_dir / "history.csv")
    plot_convergence(solution, output_dir / "convergence.png", title=f"Spring chain, N = {N}")
