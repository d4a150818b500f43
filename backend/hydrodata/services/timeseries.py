from datetime import datetime, timezone
from typing import List, Optional

from hydrodata.models.schemas import ChartPoint, Measurement
from hydrodata.services.interpolation import interpolate


_FALLBACK_FORMATS = ("%m/%d/%Y", "%Y/%m/%d")


def date_to_millis(value: str) -> Optional[float]:
    """Epoch milliseconds (UTC) for an ISO or ``M/D/YYYY`` date, else ``None``."""
    text = (value or "").strip()
    if not text:
        return None
    parsed = None
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        for fmt in _FALLBACK_FORMATS:
            try:
                parsed = datetime.strptime(text, fmt)
                break
            except ValueError:
                continue
    if parsed is None:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.timestamp() * 1000.0


def build_chart_series(
    measurements: List[Measurement], method: str = "pchip", steps: int = 100
) -> List[ChartPoint]:
    if steps < 1:
        raise ValueError("steps must be at least 1")

    dated = []
    for m in measurements:
        stamp = date_to_millis(m.date)
        if stamp is not None:
            dated.append((stamp, m.wte))
    if not dated:
        return []
    dated.sort(key=lambda item: item[0])

    xs = [stamp for stamp, _ in dated]
    ys = [wte for _, wte in dated]
    samples = [ChartPoint(date=stamp, wte=wte, is_interpolated=False) for stamp, wte in dated]

    if len(dated) == 1:
        return samples
    span = xs[-1] - xs[0]
    if span == 0:
        return samples

    step = span / steps
    targets = [xs[0] + k * step for k in range(steps)] + [xs[-1]]
    values = interpolate(method, xs, ys, targets)
    sample_dates = set(xs)

    points = [
        ChartPoint(date=tx, wte=value, is_interpolated=tx not in sample_dates)
        for tx, value in zip(targets, values)
    ]
    points.extend(samples)
    points.sort(key=lambda p: p.date)
    return points
