"""
Sigma point generation and recombination for the unscented transform.
"""

import numpy as np
from typing import Optional, Tuple

from ..math.constants import *
from ..math.utils import normalize_angle
from .errors import NonPositiveSemiDefiniteCovarianceError

class SigmaPointGenerator:
    """
    Generates the symmetric sigma point set of an augmented Gaussian.

    With n augmented dimensions and spreading parameter lambda the set has
    2n + 1 points: the mean, and the mean plus and minus each column of
    sqrt(lambda + n) * L where L is the lower Cholesky factor of the
    covariance. Weights are lambda / (lambda + n) for the mean and
    0.5 / (lambda + n) for the others.
    """

    def __init__(self, n_state: int = STATE_DIM, n_aug: int = AUGMENTED_DIM,
                 spreading: Optional[float] = None):
        """
        Initialize the generator.

        Args:
            n_state: State dimension
            n_aug: Augmented dimension (state plus process noise)
            spreading: Spreading parameter lambda, defaults to 3 - n_aug
        """
        if n_aug <= n_state:
            raise ValueError("Augmented dimension must exceed the state dimension")

        self.n_state = n_state
        self.n_aug = n_aug
        self.n_sigma = 2 * n_aug + 1
        self.spreading = 3 - n_aug if spreading is None else spreading
        self.scale = np.sqrt(self.spreading + n_aug)

        self.weights = np.full(self.n_sigma, 0.5 / (self.spreading + n_aug))
        self.weights[0] = self.spreading / (self.spreading + n_aug)
        self.weights.flags.writeable = False

    def augment(self, x: np.ndarray, P: np.ndarray, std_a: float,
                std_yawdd: float) -> Tuple[np.ndarray, np.ndarray]:
        """
        Build the augmented mean and covariance.

        Args:
            x: State mean
            P: State covariance
            std_a: Longitudinal acceleration noise standard deviation
            std_yawdd: Yaw acceleration noise standard deviation

        Returns:
            (x_aug, P_aug)
        """
        x_aug = np.zeros(self.n_aug)
        x_aug[:self.n_state] = x

        P_aug = np.zeros((self.n_aug, self.n_aug))
        P_aug[:self.n_state, :self.n_state] = P
        nu_a, nu_yawdd = self.n_state, self.n_state + 1
        P_aug[nu_a, nu_a] = std_a**2
        P_aug[nu_yawdd, nu_yawdd] = std_yawdd**2

        return x_aug, P_aug

    def generate(self, x_aug: np.ndarray, P_aug: np.ndarray,
                 out: Optional[np.ndarray] = None) -> np.ndarray:
        """
        Generate augmented sigma points.

        Args:
            x_aug: Augmented mean
            P_aug: Augmented covariance
            out: Optional n_aug x n_sigma buffer to write into

        Returns:
            n_aug x n_sigma matrix, column 0 is the mean

        Raises:
            NonPositiveSemiDefiniteCovarianceError: If P_aug has no Cholesky factor
        """
        if not np.all(np.isfinite(P_aug)):
            raise NonPositiveSemiDefiniteCovarianceError("Augmented covariance contains non-finite values")

        try:
            L = np.linalg.cholesky(P_aug)
        except np.linalg.LinAlgError as e:
            raise NonPositiveSemiDefiniteCovarianceError(
                f"Augmented covariance is not positive definite: {e}"
            ) from e

        if out is None:
            out = np.zeros((self.n_aug, self.n_sigma))

        spread = self.scale * L
        out[:, 0] = x_aug
        out[:, 1:self.n_aug + 1] = x_aug[:, np.newaxis] + spread
        out[:, self.n_aug + 1:] = x_aug[:, np.newaxis] - spread

        return out

    def mean(self, points: np.ndarray, angle_index: Optional[int] = None) -> np.ndarray:
        """
        Weighted mean of a sigma point matrix.

        An angle row is averaged as normalized offsets from the first
        (center) point, so points on both sides of +-pi average correctly.
        Without wrapping this equals the plain weighted sum.

        Args:
            points: d x n_sigma sigma points
            angle_index: Row holding an angle

        Returns:
            Weighted mean vector, angle normalized to (-pi, pi]
        """
        mean = points @ self.weights
        if angle_index is not None:
            center = points[angle_index, 0]
            offsets = [normalize_angle(a - center) for a in points[angle_index, :]]
            mean[angle_index] = normalize_angle(center + np.dot(self.weights, offsets))
        return mean

    def covariance(self, points: np.ndarray, mean: np.ndarray,
                   angle_index: Optional[int] = None) -> np.ndarray:
        """
        Weighted covariance of a sigma point matrix.

        Args:
            points: d x n_sigma sigma points
            mean: Weighted mean of the points
            angle_index: Row holding an angle, its deviations are normalized

        Returns:
            d x d covariance matrix
        """
        deviations = self.deviations(points, mean, angle_index)
        return (deviations * self.weights) @ deviations.T

    def cross_covariance(self, points_a: np.ndarray, mean_a: np.ndarray,
                         points_b: np.ndarray, mean_b: np.ndarray,
                         angle_index_a: Optional[int] = None,
                         angle_index_b: Optional[int] = None) -> np.ndarray:
        """
        Weighted cross covariance between two sigma point sets.

        Args:
            points_a: First sigma point set, da x n_sigma
            mean_a: Mean of the first set
            points_b: Second sigma point set, db x n_sigma
            mean_b: Mean of the second set
            angle_index_a: Angle row of the first set
            angle_index_b: Angle row of the second set

        Returns:
            da x db cross covariance matrix
        """
        deviations_a = self.deviations(points_a, mean_a, angle_index_a)
        deviations_b = self.deviations(points_b, mean_b, angle_index_b)
        return (deviations_a * self.weights) @ deviations_b.T

    @staticmethod
    def deviations(points: np.ndarray, mean: np.ndarray,
                   angle_index: Optional[int] = None) -> np.ndarray:
        """Deviation of every sigma point from the mean, with the angle row normalized."""
        deviations = points - mean[:, np.newaxis]
        if angle_index is not None:
            deviations[angle_index, :] = [normalize_angle(a) for a in deviations[angle_index, :]]
        return deviations
