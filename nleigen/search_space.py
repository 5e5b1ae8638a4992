import numpy as np

from .errors import FatalPhysicsError
from .operators import freq_derivative_mass, freq_derivative_stiffness


class SearchSpace:
    '''
    Orthonormal Jacobi-Davidson search directions for one eigen-index.

    Every correction is appended as a new direction, and the next mode
    estimate is the lowest Ritz pair of the pencil (Kn(w), Mn(w)) on the
    span. At an eigenvalue Kn(w) - w Mn(w) = T(w), so the Ritz value is a
    fixed point exactly when the Ritz vector solves T(w) phi = 0.
    '''
    drop_tolerance = 1.0e-10

    def __init__(self, dim: int, max_dim: int = 20):
        self.dim = dim
        self.max_dim = max_dim
        self.V = np.zeros((dim, 0))

    @property
    def size(self):
        return self.V.shape[1]

    def _orthogonalize(self, v):
        # Two passes of classical Gram-Schmidt
        for _ in range(2):
            v = v - self.V @ (self.V.T @ v)
        return v

    def expand(self, v, scale=None):
        '''
        Append the part of v orthogonal to the current span. Directions
        shorter than drop_tolerance * scale after orthogonalization are
        numerically dependent and dropped. Returns True when v was added.
        '''
        scale = np.linalg.norm(v) if scale is None else scale
        if scale == 0.0:
            return False
        w = self._orthogonalize(v)
        nrm = np.linalg.norm(w)
        if nrm <= self.drop_tolerance * scale:
            return False
        self.V = np.column_stack([self.V, w / nrm])
        return True

    def reset(self, v):
        self.V = np.zeros((self.dim, 0))
        return self.expand(v)

    def deflate(self, basis, index):
        # Deflation directions move with omega, so the span is re-projected
        columns = [basis.project_residual_vector(self.V[:, k], index) for k in range(self.size)]
        self.V = np.zeros((self.dim, 0))
        for v in columns:
            self.expand(v, scale=1.0)

    def lowest_ritz_pair(self, problem, omega, index):
        V = self.V
        Ks = V.T @ freq_derivative_stiffness(problem, omega) @ V
        Ms = V.T @ freq_derivative_mass(problem, omega) @ V
        Ks = 0.5 * (Ks + Ks.T)
        Ms = 0.5 * (Ms + Ms.T)

        d, Q = np.linalg.eigh(Ms)
        if not d[0] > 0:
            raise FatalPhysicsError(index, float(d[0]))
        W = Q / np.sqrt(d)
        theta, Z = np.linalg.eigh(W.T @ Ks @ W)
        return float(theta[0]), V @ (W @ Z[:, 0])
