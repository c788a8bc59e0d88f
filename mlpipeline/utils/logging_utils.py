import logging
import sys
import json
from datetime import datetime, timezone
from functools import wraps
from typing import Any, Callable, Dict, Optional
import traceback
import numpy as np
import os
import pandas as pd

COMPONENT_LOG_FILES = [
    "logs/feature_pipeline.log",
    "logs/feature_store.log",
    "logs/training_pipeline.log",
    "logs/inference_pipeline.log",
    "logs/model_registry.log",
    "logs/serving.log"
]


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class CustomJSONEncoder(json.JSONEncoder):
    """JSON encoder that understands NumPy and pandas values."""
    def default(self, obj):
        if isinstance(obj, np.integer):
            return int(obj)
        elif isinstance(obj, np.floating):
            return float(obj)
        elif isinstance(obj, np.bool_):
            return bool(obj)
        elif isinstance(obj, np.ndarray):
            return obj.tolist()
        elif isinstance(obj, pd.Series):
            return obj.to_dict()
        elif isinstance(obj, pd.DataFrame):
            return obj.to_dict(orient='records')
        elif isinstance(obj, (pd.Timestamp, datetime)):
            return obj.isoformat()
        return super().default(obj)


def to_json_safe(value: Any) -> Any:
    """Round-trip a value through CustomJSONEncoder so it only holds builtins."""
    return json.loads(json.dumps(value, cls=CustomJSONEncoder))


class JsonFormatter(logging.Formatter):
    """Formats each record as one JSON object per line."""
    def format(self, record):
        try:
            log_entry = {
                'timestamp': _utc_now(),
                'logger': record.name,
                'level': record.levelname,
                'message': record.getMessage(),
                'module': record.module,
                'function': record.funcName,
                'line': record.lineno
            }
            return json.dumps(log_entry, cls=CustomJSONEncoder)
        except Exception as e:
            return json.dumps({
                'timestamp': _utc_now(),
                'logger': record.name,
                'level': 'ERROR',
                'message': f'JSON serialization failed: {str(e)}',
                'original_message': str(record.msg)
            })


class PipelineLogger:
    """Centralized logging for pipeline components."""
    def __init__(self, name: str, log_file: Optional[str] = None, level: int = logging.INFO):
        """Attach a console handler and, when log_file is given, a JSON file handler."""
        self.logger = logging.getLogger(name)
        self.logger.setLevel(level)

        if log_file:
            log_dir = os.path.dirname(log_file)
            if log_dir:
                os.makedirs(log_dir, exist_ok=True)

        # Remove existing handlers to prevent duplicates
        for handler in self.logger.handlers[:]:
            handler.close()
            self.logger.removeHandler(handler)

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        ))
        self.logger.addHandler(console_handler)

        if log_file:
            try:
                file_handler = logging.FileHandler(log_file, mode='w', encoding='utf-8')
                file_handler.setFormatter(JsonFormatter())
                self.logger.addHandler(file_handler)
            except OSError as e:
                self.logger.warning(f"Failed to create file handler for {log_file}: {str(e)}")

    def log_error(self, error: Exception, context: Dict[str, Any] = None):
        """Log an error with full traceback and context."""
        error_info = {
            'error_type': type(error).__name__,
            'error_message': str(error),
            'traceback': traceback.format_exc(),
            'context': context or {}
        }
        try:
            self.logger.error(json.dumps(error_info, cls=CustomJSONEncoder))
        except (TypeError, ValueError) as e:
            self.logger.error(f"Error logging failed: {str(e)}. Original error: {str(error)}")


def error_handler(logger: PipelineLogger):
    """Decorator that logs any exception raised by the wrapped call, then re-raises it."""
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except Exception as e:
                logger.log_error(
                    e,
                    context={
                        'function': func.__name__,
                        'arguments': str(args)[:500],
                        'keyword_arguments': str(kwargs)[:500]
                    }
                )
                raise
        return wrapper
    return decorator


class MetricsLogger:
    """Emits typed metric records through a PipelineLogger."""
    def __init__(self, logger: PipelineLogger):
        self.logger = logger

    def _emit(self, record_type: str, metrics: Dict[str, Any], **keys: Any):
        log_entry = {
            'type': record_type,
            'timestamp': _utc_now(),
            **keys,
            'metrics': metrics
        }
        try:
            self.logger.logger.info(json.dumps(log_entry, cls=CustomJSONEncoder))
        except (TypeError, ValueError) as e:
            self.logger.logger.error(f"Failed to log {record_type}: {str(e)}")

    def log_training_metrics(self, metrics: Dict[str, Any], model_version: str):
        """Log training-related metrics."""
        self._emit('training_metrics', metrics, model_version=model_version)

    def log_inference_metrics(self, metrics: Dict[str, Any], model_version: str):
        """Log inference-related metrics."""
        self._emit('inference_metrics', metrics, model_version=model_version)

    def log_data_metrics(self, metrics: Dict[str, Any], feature_version: str):
        """Log data quality and feature metrics."""
        self._emit('data_metrics', metrics, feature_version=feature_version)

    def log_drift_metrics(self, metrics: Dict[str, Any], model_version: str):
        """Log input drift against the training distribution."""
        self._emit('drift_metrics', metrics, model_version=model_version)


def clean_test_logs():
    """Close every handler and remove the component log files."""
    for logger_name in list(logging.root.manager.loggerDict):
        logger = logging.getLogger(logger_name)
        for handler in logger.handlers[:]:
            handler.close()
            logger.removeHandler(handler)

    for log_file in COMPONENT_LOG_FILES:
        if os.path.exists(log_file):
            try:
                os.remove(log_file)
            except PermissionError:
                print(f"Warning: Could not remove {log_file} - file is in use")

    if os.path.exists("logs") and not os.listdir("logs"):
        try:
            os.rmdir("logs")
        except OSError:
            print("Warning: Could not remove logs directory")
