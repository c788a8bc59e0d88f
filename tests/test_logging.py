import pytest
import json
import os
import logging
import numpy as np
import pandas as pd
from mlpipeline.feature_store import FeatureStore
from mlpipeline.model_registry import ModelRegistry
from mlpipeline.feature_pipeline import FeaturePipeline
from mlpipeline.training_pipeline import TrainingPipeline
from mlpipeline.inference_pipeline import InferencePipeline
from mlpipeline.utils.logging_utils import (
    CustomJSONEncoder, PipelineLogger, clean_test_logs, error_handler
)


@pytest.fixture
def test_components():
    """Initialize components with local storage."""
    feature_store = FeatureStore(storage_path="test_features")
    model_registry = ModelRegistry(storage_path="test_models")
    feature_pipeline = FeaturePipeline(feature_store)
    training_pipeline = TrainingPipeline(feature_store, model_registry)
    inference_pipeline = InferencePipeline(feature_store, model_registry)
    return feature_store, model_registry, feature_pipeline, training_pipeline, inference_pipeline


@pytest.fixture(autouse=True)
def close_handlers():
    """Release file handlers so each test starts from fresh log files."""
    yield
    clean_test_logs()


def read_log(log_file):
    with open(log_file, 'r', encoding='utf-8') as f:
        return [json.loads(line) for line in f if line.strip()]


def messages(log_file):
    return [entry['message'] for entry in read_log(log_file)]


def metric_records(log_file, record_type):
    records = []
    for message in messages(log_file):
        try:
            payload = json.loads(message)
        except ValueError:
            continue
        if isinstance(payload, dict) and payload.get('type') == record_type:
            records.append(payload)
    return records


def test_logging_setup(test_components):
    """Test that logging is properly initialized."""
    _, _, _, training_pipeline, _ = test_components

    assert training_pipeline.logger is not None
    assert training_pipeline.metrics_logger is not None
    assert os.path.exists("logs/training_pipeline.log")


def test_feature_pipeline_logging(test_components, sample_data):
    """Test feature pipeline logging functionality."""
    _, _, feature_pipeline, _, _ = test_components

    feature_pipeline.process_data(sample_data, "test")

    logged = messages("logs/feature_pipeline.log")
    assert any("Starting feature processing" in msg for msg in logged)
    assert any("Feature engineering" in msg for msg in logged)
    assert any("Completed feature processing" in msg for msg in logged)

    data_metrics = metric_records("logs/feature_pipeline.log", 'data_metrics')
    assert data_metrics[0]['metrics']['row_count'] == 100
    assert data_metrics[0]['feature_version'] == "test"


def test_training_pipeline_logging(test_components, sample_data):
    """Test training pipeline logging functionality."""
    _, _, feature_pipeline, training_pipeline, _ = test_components

    feature_pipeline.process_data(sample_data, "test")
    training_pipeline.train("test", "test")

    logged = messages("logs/training_pipeline.log")
    assert any("Starting model training" in msg for msg in logged)
    assert any("Model training completed" in msg for msg in logged)

    training_metrics = metric_records("logs/training_pipeline.log", 'training_metrics')
    assert training_metrics[0]['model_version'] == "test"
    assert 'accuracy' in training_metrics[0]['metrics']['test']


def test_inference_pipeline_logging(test_components, sample_data):
    """Test inference pipeline logging and monitoring records."""
    _, _, feature_pipeline, training_pipeline, inference_pipeline = test_components

    features, _ = feature_pipeline.process_data(sample_data, "test")
    training_pipeline.train("test", "test")
    inference_pipeline.predict(features, "test")

    logged = messages("logs/inference_pipeline.log")
    assert any("Loading model version" in msg for msg in logged)
    assert any("Making predictions" in msg for msg in logged)
    assert any("Completed predictions" in msg for msg in logged)

    inference_metrics = metric_records("logs/inference_pipeline.log", 'inference_metrics')
    assert inference_metrics[0]['metrics']['batch_size'] == 100
    assert sum(inference_metrics[0]['metrics']['prediction_distribution'].values()) == 100

    drift_metrics = metric_records("logs/inference_pipeline.log", 'drift_metrics')
    assert set(drift_metrics[0]['metrics']) == {'x1', 'x2'}


def test_drift_warning_logged(test_components, sample_data):
    _, _, feature_pipeline, training_pipeline, inference_pipeline = test_components

    features, _ = feature_pipeline.process_data(sample_data, "test")
    training_pipeline.train("test", "test")
    inference_pipeline.predict(features.assign(x2=features['x2'] * 50), "test")

    warnings = [entry['message'] for entry in read_log("logs/inference_pipeline.log")
                if entry['level'] == 'WARNING']
    assert any("Input drift detected" in msg and "x2" in msg for msg in warnings)


def test_model_registry_logging(test_components, sample_data):
    """Test model registry logging functionality."""
    _, _, feature_pipeline, training_pipeline, _ = test_components

    feature_pipeline.process_data(sample_data, "test")
    training_pipeline.train("test", "test")

    logged = messages("logs/model_registry.log")
    assert any("Saving model version" in msg for msg in logged)
    assert any("saved" in msg.lower() for msg in logged)


def test_error_logging(test_components):
    """Errors are logged as JSON with their context before being re-raised."""
    _, _, _, training_pipeline, _ = test_components

    with pytest.raises(FileNotFoundError):
        training_pipeline.train("nonexistent", "test")

    error_logs = [entry for entry in read_log("logs/training_pipeline.log") if entry['level'] == 'ERROR']
    assert error_logs
    payload = json.loads(error_logs[0]['message'])
    assert payload['error_type'] == 'FileNotFoundError'
    assert payload['context']['feature_version'] == "nonexistent"


def test_error_handler_reraises():
    logger = PipelineLogger(name="ErrorHandlerTest", log_file="logs/error_handler.log")

    @error_handler(logger=logger)
    def divide(a, b):
        return a / b

    assert divide(4, 2) == 2
    with pytest.raises(ZeroDivisionError):
        divide(1, 0)

    payload = json.loads(read_log("logs/error_handler.log")[0]['message'])
    assert payload['context']['function'] == 'divide'


def test_custom_json_encoder():
    encoded = json.loads(json.dumps({
        'int': np.int64(3),
        'float': np.float32(0.5),
        'bool': np.bool_(True),
        'array': np.array([1, 2]),
        'series': pd.Series({'a': 1}),
        'timestamp': pd.Timestamp('2024-01-02')
    }, cls=CustomJSONEncoder))

    assert encoded == {
        'int': 3,
        'float': 0.5,
        'bool': True,
        'array': [1, 2],
        'series': {'a': 1},
        'timestamp': '2024-01-02T00:00:00'
    }


def test_pipeline_logger_replaces_handlers():
    PipelineLogger(name="DuplicateTest", log_file="logs/duplicate.log")
    PipelineLogger(name="DuplicateTest", log_file="logs/duplicate.log")
    assert len(logging.getLogger("DuplicateTest").handlers) == 2
