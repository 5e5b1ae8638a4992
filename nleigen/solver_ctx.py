from dataclasses import dataclass, field
from typing import Any

import numpy as np


@dataclass(frozen=True, kw_only=True)
class SolverCtx:
    tolerance: float = 1e-12          # relative change of omega between inner iterations
    max_iterations: int = 20          # inner iterations per eigenvalue
    initial_omega: float = 0.0        # seed for the first eigenvalue
    start_vector: Any = None          # initial mode guess, default linspace(1, 2, n)
    shift_switch_tolerance: float = 1e-3   # rel.error below which the shift follows omega
    max_subspace_dim: int = 20        # search space restarts from the current mode beyond this
    verbose: bool = True
    correction_solver_parameters: dict = field(default_factory=lambda: dict(SolverCtx.sp_minres))

    # Krylov solver parameters for the correction equation
    sp_minres = {"ksp_type": "minres",
                 "ksp_rtol": 1.0e-12,
                 "ksp_atol": 1.0e-50,
                 "pc_type": "none"}
    sp_cg = {"ksp_type": "cg",
             "ksp_rtol": 1.0e-12,
             "ksp_atol": 1.0e-50,
             "pc_type": "none"}

    def __post_init__(self):
        if self.max_subspace_dim < 2:
            raise ValueError(f"max_subspace_dim must be at least 2, got {self.max_subspace_dim}")

    @classmethod
    def from_config(cls, config: dict = None):
        config = config or {}
        sp = dict(cls.sp_minres)
        sp.update(config.get("correction_solver_parameters", {}))
        return cls(tolerance=config.get("tolerance", 1e-12),
                   max_iterations=config.get("max_iterations", 20),
                   initial_omega=config.get("initial_omega", 0.0),
                   start_vector=config.get("start_vector", None),
                   shift_switch_tolerance=config.get("shift_switch_tolerance", 1e-3),
                   max_subspace_dim=config.get("max_subspace_dim", 20),
                   verbose=config.get("verbose", True),
                   correction_solver_parameters=sp)

    def initial_vector(self, dim):
        if self.start_vector is None:
            return np.linspace(1.0, 2.0, dim)
        v = np.array(self.start_vector, dtype=float)
        if v.shape != (dim,):
            raise ValueError(f"start_vector has shape {v.shape}, expected {(dim,)}")
        return v
