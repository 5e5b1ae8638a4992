import argparse
import sys
from pathlib import Path

from petsc4py import PETSc

from .errors import FatalInputError, FatalPhysicsError
from .io import read_problem, write_history, write_results
from .jacobi_davidson import NonlinearJacobiDavidsonSolver
from .plotting import plot_convergence


def main(argv=None):
    parser = argparse.ArgumentParser(prog="nleigen",
                                     description="Lowest eigenpairs of K0 phi = sum_j w^(j+1) M_j phi "
                                                 "by a nonlinear Jacobi-Davidson iteration.")
    parser.add_argument("filepath", help="problem file; Phi.dat and Omega.dat are written beside it")
    parser.add_argument("--max-iterations", type=int, default=None)
    parser.add_argument("--tolerance", type=float, default=None)
    parser.add_argument("--initial-omega", type=float, default=None)
    parser.add_argument("--history", action="store_true", help="write history.csv")
    parser.add_argument("--plot", action="store_true", help="write convergence.png")
    parser.add_argument("--quiet", action="store_true")
    args = parser.parse_args(argv)

    solver_parameters = {"verbose": not args.quiet}
    for key in ("max_iterations", "tolerance", "initial_omega"):
        if getattr(args, key) is not None:
            solver_parameters[key] = getattr(args, key)
    output_dir = Path(args.filepath).parent

    try:
        if not args.quiet:
            PETSc.Sys.Print("Reading filedata ...", flush=True)
        problem = read_problem(args.filepath)
        solver = NonlinearJacobiDavidsonSolver(problem, solver_parameters)
        solution = solver.solve()

        if not args.quiet:
            PETSc.Sys.Print("Writing results ...", flush=True)
        write_results(solution, args.filepath)
        if args.history:
            write_history(solution, output_dir / "history.csv")
        if args.plot:
            plot_convergence(solution, output_dir / "convergence.png", title=Path(args.filepath).name)
    except (FatalInputError, FatalPhysicsError) as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
