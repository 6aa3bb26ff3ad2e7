from .metrics_exporter import MetricsRegistry

__all__ = ["MetricsRegistry"]
