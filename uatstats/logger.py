"""
Structured logging for uatstats.

Provides centralized logging with console and file outputs, plus run
metrics (API calls, outcomes, failures, winning strategies) used in the
end-of-run summary.
"""

import logging
import os
import sys
import threading
from pathlib import Path
from typing import Optional
from datetime import datetime
import json


class StructuredLogger:
    """
    Centralized logger with support for console and file outputs.
    Tracks metrics for monitoring a resolution run.
    """

    def __init__(
        self,
        name: str = "uatstats",
        level: str = "INFO",
        log_dir: Optional[Path] = None,
        enable_file: bool = True,
        enable_console: bool = True,
    ):
        """
        Initialize the structured logger.

        Args:
            name: Logger name
            level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            log_dir: Directory for log files (default: logs/)
            enable_file: Write logs to file
            enable_console: Output logs to console
        """
        self.logger = logging.getLogger(name)
        self.logger.setLevel(logging.DEBUG)
        self.logger.propagate = False
        self._metrics_lock = threading.Lock()
        self.metrics = self._empty_metrics()
        self.configure(level=level, log_dir=log_dir, enable_file=enable_file, enable_console=enable_console)

    def configure(
        self,
        level: str = "INFO",
        log_dir: Optional[Path] = None,
        enable_file: bool = True,
        enable_console: bool = True,
    ):
        """Replace the output handlers in place (module-level references stay valid)."""
        for handler in list(self.logger.handlers):
            self.logger.removeHandler(handler)
            handler.close()

        if enable_console:
            console_handler = logging.StreamHandler(sys.stderr)
            console_handler.setLevel(getattr(logging, level.upper()))
            console_formatter = logging.Formatter(
                fmt='%(asctime)s | %(levelname)-8s | %(name)s | %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
            console_handler.setFormatter(console_formatter)
            self.logger.addHandler(console_handler)

        if enable_file:
            if log_dir is None:
                log_dir = Path(os.getenv("UATSTATS_LOG_DIR", "logs"))
            log_dir.mkdir(parents=True, exist_ok=True)

            log_file = log_dir / f"uatstats_{datetime.now().strftime('%Y%m%d')}.log"
            file_handler = logging.FileHandler(log_file, encoding='utf-8')
            file_handler.setLevel(logging.DEBUG)  # Always log everything to file
            file_formatter = logging.Formatter(
                fmt='%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
            file_handler.setFormatter(file_formatter)
            self.logger.addHandler(file_handler)

        if not self.logger.handlers:
            self.logger.addHandler(logging.NullHandler())

    @staticmethod
    def _empty_metrics() -> dict:
        return {
            "api_calls": 0,
            "api_calls_by_operation": {},
            "localities_processed": 0,
            "outcomes": {},
            "errors_by_type": {},
            "strategy_hits": {},
        }

    def debug(self, message: str, **kwargs):
        """Log debug message with optional context."""
        self._log(logging.DEBUG, message, kwargs)

    def info(self, message: str, **kwargs):
        """Log info message with optional context."""
        self._log(logging.INFO, message, kwargs)

    def warning(self, message: str, **kwargs):
        """Log warning message with optional context."""
        self._log(logging.WARNING, message, kwargs)

    def error(self, message: str, **kwargs):
        """Log error message with optional context."""
        self._log(logging.ERROR, message, kwargs)

    def critical(self, message: str, **kwargs):
        """Log critical message with optional context."""
        self._log(logging.CRITICAL, message, kwargs)

    def _log(self, level: int, message: str, context: dict):
        if context:
            message = f"{message} | Context: {json.dumps(context, ensure_ascii=False, default=str)}"
        self.logger.log(level, message)

    # Metric tracking methods (called from aggregator worker threads)

    def record_api_call(self, operation: str = "graphql"):
        """Increment API call counters."""
        with self._metrics_lock:
            self.metrics["api_calls"] += 1
            by_op = self.metrics["api_calls_by_operation"]
            by_op[operation] = by_op.get(operation, 0) + 1

    def record_outcome(self, outcome: str):
        """Record the final outcome for one locality."""
        with self._metrics_lock:
            self.metrics["localities_processed"] += 1
            outcomes = self.metrics["outcomes"]
            outcomes[outcome] = outcomes.get(outcome, 0) + 1

    def record_failure(self, error_type: str):
        """Record a swallowed per-call failure."""
        with self._metrics_lock:
            errors = self.metrics["errors_by_type"]
            errors[error_type] = errors.get(error_type, 0) + 1

    def record_strategy_hit(self, strategy: int):
        """Record which strategy position produced a match."""
        with self._metrics_lock:
            hits = self.metrics["strategy_hits"]
            hits[strategy] = hits.get(strategy, 0) + 1

    def get_metrics(self) -> dict:
        """Return current metrics with the derived resolution rate."""
        with self._metrics_lock:
            metrics_copy = {k: dict(v) if isinstance(v, dict) else v for k, v in self.metrics.items()}
        processed = metrics_copy["localities_processed"]
        found = metrics_copy["outcomes"].get("found", 0)
        metrics_copy["resolution_rate"] = round(found / processed, 3) if processed else 0.0
        return metrics_copy

    def reset_metrics(self):
        with self._metrics_lock:
            self.metrics = self._empty_metrics()

    def log_metrics_summary(self):
        """Log a summary of current metrics."""
        metrics = self.get_metrics()

        self.info("=== Resolution Run Metrics ===")
        self.info(f"API Calls: {metrics['api_calls']}")
        for operation, count in sorted(metrics["api_calls_by_operation"].items()):
            self.info(f"  {operation}: {count}")
        self.info(
            f"Localities: {metrics['localities_processed']} "
            f"({metrics['resolution_rate'] * 100:.1f}% found)"
        )
        for outcome, count in sorted(metrics["outcomes"].items()):
            self.info(f"  {outcome}: {count}")

        if metrics["strategy_hits"]:
            self.info("Winning strategies:")
            for strategy, count in sorted(metrics["strategy_hits"].items()):
                self.info(f"  #{strategy}: {count}")

        if metrics["errors_by_type"]:
            self.info("Error Types:")
            for error_type, count in metrics["errors_by_type"].items():
                self.info(f"  {error_type}: {count}")


# Global logger instance
_global_logger: Optional[StructuredLogger] = None


def get_logger(
    name: str = "uatstats",
    level: str = "INFO",
    **kwargs
) -> StructuredLogger:
    """
    Get or create the global logger instance.

    Args:
        name: Logger name
        level: Console log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        **kwargs: Additional arguments passed to StructuredLogger

    Returns:
        StructuredLogger instance
    """
    global _global_logger

    if _global_logger is None:
        _global_logger = StructuredLogger(name=name, level=level, **kwargs)

    return _global_logger


def reset_logger():
    """Reset the global logger (useful for testing)."""
    global _global_logger
    _global_logger = None
