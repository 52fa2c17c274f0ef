from services.chart_series import ChartPoint
from services.csv_export import export_series_csv
from services.metrics import Metric


def test_export_series_csv() -> None:
    points = [ChartPoint(label="2026-10-02", value=0), ChartPoint(label="2026-10-03", value=13)]

    assert export_series_csv(points, Metric.BOOSTS) == "Date;Boosts\n2026-10-02;0\n2026-10-03;13\n"


def test_export_empty_series_keeps_header() -> None:
    assert export_series_csv([], "followers") == "Date;Followers\n"
