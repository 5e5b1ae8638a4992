class NLEigenError(Exception):
    '''Base class for errors raised by the nonlinear eigensolver.'''


class FatalInputError(NLEigenError):
    '''The problem file could not be read, or a result file could not be written.'''


class FatalPhysicsError(NLEigenError):
    '''
    The generalized mass quadratic form of a candidate mode is not positive.
    The problem formulation is inconsistent, so the whole run stops here.
    '''

    def __init__(self, index: int, ptmp: float):
        self.index = index
        self.ptmp = ptmp
        super().__init__(f"Negative mass matrix: phi^T M(omega) phi = {ptmp:.6e} for eigenvalue #{index}")


class ConvergenceWarning(UserWarning):
    '''An eigen-index hit the iteration cap; its last estimate was kept.'''


class CorrectionSolveWarning(UserWarning):
    '''The Krylov solve of the correction equation did not reach its tolerance.'''
