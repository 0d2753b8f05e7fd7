"""Check numerical integration over boxes."""

import numpy as np
import pytest
from wgfem.cubature import IntegrationSettings, cubature
from wgfem.errors import ConfigurationError


@pytest.mark.parametrize(
    ("lo", "hi", "expected"),
    (
        ((0.0,), (2.0,), 8 / 3),
        ((0.0, 0.0), (1.0, 2.0), 1 / 3 * 2 + 8 / 3),
        ((-1.0, 0.0, 1.0), (1.0, 1.0, 2.0), 2 / 3 + 2 / 3 + 14 / 3),
    ),
)
def test_sum_of_squares(lo, hi, expected) -> None:
    """Check integration of a sum of squared coordinates."""
    v = cubature(lambda x: float(np.sum(x**2)), lo, hi, 1e-12, 1e-12)
    assert v == pytest.approx(expected)


def test_zero_dimensional() -> None:
    """Check a zero dimensional box gives the function value."""
    assert cubature(lambda x: 3.5 + x.size, [], [], 1e-12, 1e-12) == 3.5


def test_mismatched_corners() -> None:
    """Check corners of different sizes are rejected."""
    with pytest.raises(ValueError):
        cubature(lambda x: 1.0, [0.0], [1.0, 1.0], 1e-12, 1e-12)


@pytest.mark.parametrize(("rel", "abs_"), ((0.0, 1e-9), (1e-9, -1.0), (float("nan"), 1)))
def test_invalid_settings(rel: float, abs_: float) -> None:
    """Check tolerances must be positive."""
    with pytest.raises(ConfigurationError):
        IntegrationSettings(rel, abs_)


def test_default_settings() -> None:
    """Check default tolerances."""
    s = IntegrationSettings()
    assert s.rel_err == pytest.approx(1e-12)
    assert s.abs_err == pytest.approx(1e-12)
