from .problem_ctx     import Problem, EigenSolution, EigenReport
from .solver_ctx      import SolverCtx
from .jacobi_davidson import NonlinearJacobiDavidsonSolver
from .correction_solver import CorrectionSolver, SolverStatus
from .deflation       import DeflationBasis
from .search_space    import SearchSpace
from .errors          import (NLEigenError, FatalInputError, FatalPhysicsError,
                              ConvergenceWarning, CorrectionSolveWarning)
from .io              import read_problem, write_problem, write_results, write_history

__version__ = "0.1.0"

__all__ = ["Problem", "EigenSolution", "EigenReport", "SolverCtx", "NonlinearJacobiDavidsonSolver",
           "CorrectionSolver", "SolverStatus", "DeflationBasis", "SearchSpace", "NLEigenError", "FatalInputError",
           "FatalPhysicsError", "ConvergenceWarning", "CorrectionSolveWarning", "read_problem", "write_problem",
           "write_results", "write_history"]
