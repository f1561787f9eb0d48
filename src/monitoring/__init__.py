"""
Monitoring and metrics infrastructure for StakePool.

This package provides:
- Application metrics collection (counters, gauges, histograms)
- Structured logging with JSON output
- Request timing middleware for the Flask API

Usage:
    from monitoring import metrics, get_logger

    metrics.increment("staking_operations_total", labels={"operation": "stake"})

    logger = get_logger(__name__)
    logger.info("Stake committed", extra={"account": "alice", "amount": 100})
"""

from monitoring.logging import LoggingContext, configure_logging, get_logger
from monitoring.metrics import MetricsCollector, metrics
from monitoring.middleware import setup_request_logging

__all__ = [
    "LoggingContext",
    "MetricsCollector",
    "configure_logging",
    "get_logger",
    "metrics",
    "setup_request_logging",
]
