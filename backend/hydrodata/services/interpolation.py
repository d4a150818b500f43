"""Dense curve reconstruction from sparse, sorted samples.

Two strategies share one contract: targets at or below ``x[0]`` return
``y[0]`` and targets at or above ``x[-1]`` return ``y[-1]`` exactly; no
samples give ``0.0`` and a single sample gives ``y[0]`` everywhere. Callers
sort the samples by ``x``. Both functions are pure.
"""
import math
from typing import Callable, Dict, List, Sequence

import numpy as np


def _prepare(x: Sequence[float], y: Sequence[float]):
    xs = np.asarray(x, dtype=float)
    ys = np.asarray(y, dtype=float)
    if xs.shape != ys.shape or xs.ndim != 1:
        raise ValueError("x and y must be one-dimensional and of equal length")
    return xs, ys


def _secants(xs: np.ndarray, ys: np.ndarray):
    h = np.diff(xs)
    delta = np.zeros_like(h)
    nonzero = h != 0
    # zero-length intervals keep delta == 0
    delta[nonzero] = np.diff(ys)[nonzero] / h[nonzero]
    return h, delta


def locate_interval(xs: np.ndarray, target: float) -> int:
    """Largest ``i`` with ``x[i] <= target < x[i+1]``, capped at ``n - 2``."""
    i = 0
    last = len(xs) - 2
    while i < last and xs[i + 1] <= target:
        i += 1
    return i


def _degenerate(ys: np.ndarray, target_x: Sequence[float]) -> List[float]:
    value = float(ys[0]) if len(ys) == 1 else 0.0
    return [value for _ in target_x]


def pchip_slopes(h: np.ndarray, delta: np.ndarray) -> np.ndarray:
    n = len(h) + 1
    m = np.zeros(n)
    for i in range(1, n - 1):
        if not delta[i - 1] * delta[i] > 0:
            # local extremum or flat segment
            continue
        w1 = 2 * h[i] + h[i - 1]
        w2 = h[i] + 2 * h[i - 1]
        with np.errstate(divide="ignore", invalid="ignore"):
            denom = w1 / delta[i - 1] + w2 / delta[i]
        if not math.isfinite(denom) or denom == 0:
            continue
        m[i] = (w1 + w2) / denom
    m[0] = delta[0] if math.isfinite(delta[0]) else 0.0
    m[n - 1] = delta[n - 2] if math.isfinite(delta[n - 2]) else 0.0
    return m


def interpolate_pchip(x: Sequence[float], y: Sequence[float], target_x: Sequence[float]) -> List[float]:
    """Monotone piecewise cubic Hermite interpolation."""
    xs, ys = _prepare(x, y)
    n = len(xs)
    if n < 2:
        return _degenerate(ys, target_x)

    h, delta = _secants(xs, ys)
    m = pchip_slopes(h, delta)

    out: List[float] = []
    for tx in target_x:
        if tx <= xs[0]:
            out.append(float(ys[0]))
            continue
        if tx >= xs[-1]:
            out.append(float(ys[-1]))
            continue

        i = locate_interval(xs, tx)
        if h[i] == 0:
            out.append(float(ys[i]))
            continue

        t = (tx - xs[i]) / h[i]
        t2 = t * t
        t3 = t2 * t
        h10 = t3 - 2 * t2 + t
        h01 = -2 * t3 + 3 * t2
        h11 = t3 - t2
        # h00 + h01 == 1, written around y[i] so equal samples stay exact
        value = float(ys[i] + h01 * (ys[i + 1] - ys[i]) + h[i] * (h10 * m[i] + h11 * m[i + 1]))
        out.append(value if math.isfinite(value) else float(ys[i]))
    return out


def natural_second_derivatives(h: np.ndarray, delta: np.ndarray) -> np.ndarray:
    """Solve the natural-spline tridiagonal system by forward elimination and back substitution."""
    n = len(h) + 1
    sub = np.zeros(n)
    diag = np.ones(n)
    sup = np.zeros(n)
    rhs = np.zeros(n)
    for i in range(1, n - 1):
        sub[i] = h[i - 1]
        diag[i] = 2 * (h[i - 1] + h[i])
        sup[i] = h[i]
        rhs[i] = 6 * (delta[i] - delta[i - 1])

    for i in range(1, n):
        if diag[i - 1] == 0:
            continue
        w = sub[i] / diag[i - 1]
        diag[i] -= w * sup[i - 1]
        rhs[i] -= w * rhs[i - 1]

    m = np.zeros(n)
    for i in range(n - 1, -1, -1):
        if diag[i] == 0:
            continue
        upper = sup[i] * m[i + 1] if i < n - 1 else 0.0
        value = (rhs[i] - upper) / diag[i]
        if math.isfinite(value):
            m[i] = value
    return m


def interpolate_natural_cubic(x: Sequence[float], y: Sequence[float], target_x: Sequence[float]) -> List[float]:
    """Natural cubic spline; two samples reduce to straight-line interpolation."""
    xs, ys = _prepare(x, y)
    n = len(xs)
    if n < 2:
        return _degenerate(ys, target_x)

    h, delta = _secants(xs, ys)
    linear = n == 2
    m = np.zeros(n) if linear else natural_second_derivatives(h, delta)

    out: List[float] = []
    for tx in target_x:
        if tx <= xs[0]:
            out.append(float(ys[0]))
            continue
        if tx >= xs[-1]:
            out.append(float(ys[-1]))
            continue

        i = locate_interval(xs, tx)
        if h[i] == 0:
            out.append(float(ys[i]))
            continue

        t = tx - xs[i]
        if linear:
            value = float(ys[i] + delta[i] * t)
        else:
            b = delta[i] - h[i] * (2 * m[i] + m[i + 1]) / 6
            c = m[i] / 2
            d = (m[i + 1] - m[i]) / (6 * h[i])
            value = float(ys[i] + b * t + c * t * t + d * t * t * t)
        out.append(value if math.isfinite(value) else float(ys[i]))
    return out


STRATEGIES: Dict[str, Callable[[Sequence[float], Sequence[float], Sequence[float]], List[float]]] = {
    "pchip": interpolate_pchip,
    "natural": interpolate_natural_cubic,
}


def interpolate(method: str, x: Sequence[float], y: Sequence[float], target_x: Sequence[float]) -> List[float]:
    try:
        strategy = STRATEGIES[method]
    except KeyError:
        raise ValueError(f"Unknown interpolation method: {method}") from None
    return strategy(x, y, target_x)
