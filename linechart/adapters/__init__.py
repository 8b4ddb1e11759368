from linechart.adapters.normalize import normalize_chart, normalize_series

__all__ = ["normalize_chart", "normalize_series"]
