import itertools
from dataclasses import dataclass

import numpy as np
from petsc4py import PETSc

from .solver_ctx import SolverCtx


def _reason_names():
    names = {}
    for key, value in vars(PETSc.KSP.ConvergedReason).items():
        if key.isupper() and isinstance(value, int):
            names.setdefault(value, key)
    return names


_REASON_NAMES = _reason_names()


@dataclass(frozen=True)
class SolverStatus:
    converged: bool
    reason: str
    iterations: int
    residual_norm: float


class CorrectionSolver:
    '''
    Krylov solve of the (projected) correction equation A x = b on a dense
    symmetric operator. The KSP is configured from a PETSc options dictionary,
    e.g. {"ksp_type": "minres", "ksp_rtol": 1e-12, "pc_type": "none"}.
    ksp_max_it defaults to twice the dimension.
    '''
    _ids = itertools.count()

    def __init__(self, solver_parameters: dict = None):
        self.solver_parameters = dict(SolverCtx.sp_minres)
        self.solver_parameters.update(solver_parameters or {})
        self.prefix = f"nleigen_correction_{next(self._ids)}_"

    def solve(self, A, b):
        n = A.shape[0]
        sp = dict(self.solver_parameters)
        sp.setdefault("ksp_max_it", 2 * n)

        mat = PETSc.Mat().createDense([n, n], comm=PETSc.COMM_SELF)
        mat.setUp()
        idx = np.arange(n, dtype=PETSc.IntType)
        mat.setValues(idx, idx, np.ascontiguousarray(A, dtype=PETSc.ScalarType).ravel())
        mat.assemble()
        x, rhs = mat.createVecs()
        rhs.setArray(np.asarray(b, dtype=PETSc.ScalarType))
        x.set(0.0)

        ksp = PETSc.KSP().create(comm=PETSc.COMM_SELF)
        ksp.setOperators(mat)
        ksp.setOptionsPrefix(self.prefix)
        opts = PETSc.Options()
        for key, value in sp.items():
            opts[self.prefix + key] = value
        try:
            ksp.setFromOptions()
            ksp.solve(rhs, x)
            reason = ksp.getConvergedReason()
            sol = np.real(x.getArray()).copy()
            status = SolverStatus(converged=reason > 0 and bool(np.all(np.isfinite(sol))),
                                  reason=_REASON_NAMES.get(reason, str(reason)),
                                  iterations=ksp.getIterationNumber(),
                                  residual_norm=float(ksp.getResidualNorm()))
        finally:
            for key in sp:
                opts.delValue(self.prefix + key)
            ksp.destroy()
            x.destroy()
            rhs.destroy()
            mat.destroy()

        if not np.all(np.isfinite(sol)):
            sol = np.zeros(n)
        return sol, status
