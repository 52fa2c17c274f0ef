"""CSV export of chart series."""

import csv
import io
from typing import Iterable

from services.chart_series import ChartPoint
from services.metrics import Metric, parse_selector


def export_series_csv(points: Iterable[ChartPoint], metric: Metric | str) -> str:
    """Semicolon separated `Date;<Metric>` rows with a header line."""
    metric = parse_selector(Metric, metric, "metric")
    buffer = io.StringIO()
    writer = csv.writer(buffer, delimiter=";", lineterminator="\n")
    writer.writerow(["Date", metric.display_name])
    for point in points:
        writer.writerow([point.label, point.value])
    return buffer.getvalue()
