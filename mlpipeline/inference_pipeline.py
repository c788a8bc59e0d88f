from typing import List, Dict, Any, Tuple
import pandas as pd
from mlpipeline.cleaning import fill_categorical
from mlpipeline.feature_store import FeatureStore
from mlpipeline.model_registry import ModelRegistry
from mlpipeline.utils.logging_utils import PipelineLogger, error_handler, MetricsLogger
import numpy as np
from datetime import datetime


class InferencePipeline:
    """
    Pipeline for making predictions using trained models.

    Loads model bundles from the registry (cached per version), validates
    raw inputs against the training metadata, applies the stored
    preprocessing and logs inference and drift metrics for monitoring.

    Attributes:
        feature_store (FeatureStore): Instance for accessing feature information
        model_registry (ModelRegistry): Instance for loading models
        drift_threshold (float): Standardized mean shift above which a column is flagged
    """
    def __init__(self, feature_store: FeatureStore, model_registry: ModelRegistry,
                 drift_threshold: float = 3.0):
        self.feature_store = feature_store
        self.model_registry = model_registry
        self.drift_threshold = drift_threshold
        self._bundles: Dict[str, Tuple[Dict[str, Any], Dict[str, Any]]] = {}
        self.logger = PipelineLogger(
            name="InferencePipeline",
            log_file="logs/inference_pipeline.log"
        )
        self.metrics_logger = MetricsLogger(self.logger)

    def load_bundle(self, model_version: str) -> Tuple[Dict[str, Any], Dict[str, Any]]:
        """Return (bundle, metadata) for a version, loading it on first use."""
        if model_version not in self._bundles:
            self.logger.logger.info(f"Loading model version {model_version} for inference")
            self._bundles[model_version] = self.model_registry.load_model(model_version)
        return self._bundles[model_version]

    def _prepare(self, features: pd.DataFrame, model_version: str):
        model_bundle, metadata = self.load_bundle(model_version)

        self.logger.logger.info("Validating input features")
        self._validate_features(features, metadata['feature_columns'], metadata['numeric_columns'])

        self.logger.logger.info("Preprocessing features")
        features = fill_categorical(features, metadata['categorical_columns'])
        processed = model_bundle['preprocessor'].transform(features)
        return model_bundle['model'], metadata, processed

    def _input_stats(self, features: pd.DataFrame, numeric_columns: List[str]) -> Dict[str, Any]:
        numeric = features[numeric_columns]
        return {
            'mean': numeric.mean().to_dict(),
            'std': numeric.std().to_dict(),
            'null_counts': features.isnull().sum().to_dict()
        }

    @error_handler(logger=PipelineLogger(name="InferencePipeline"))
    def predict(self, features: pd.DataFrame, model_version: str) -> np.ndarray:
        """Make predictions using a specific model version."""
        try:
            start_time = datetime.now()
            model, metadata, processed = self._prepare(features, model_version)

            self.logger.logger.info("Making predictions")
            predictions = model.predict(processed)
            inference_time = (datetime.now() - start_time).total_seconds()

            inference_metrics = {
                'inference_time': inference_time,
                'batch_size': len(features),
                'model_version': model_version,
                'prediction_distribution': {
                    str(k): int(v) for k, v in pd.Series(predictions).value_counts().items()
                },
                'input_feature_stats': self._input_stats(features, metadata['numeric_columns'])
            }
            self.metrics_logger.log_inference_metrics(inference_metrics, model_version)
            self.check_drift(features, metadata, model_version)

            self.logger.logger.info(
                f"Completed predictions for {len(features)} samples in {inference_time:.3f} seconds"
            )
            return predictions

        except Exception as e:
            self.logger.log_error(e, {
                'model_version': model_version,
                'feature_shape': features.shape,
                'step': 'prediction'
            })
            raise

    @error_handler(logger=PipelineLogger(name="InferencePipeline"))
    def predict_proba(self, features: pd.DataFrame, model_version: str) -> np.ndarray:
        """Calculate prediction probabilities using a specific model version."""
        try:
            start_time = datetime.now()
            model, metadata, processed = self._prepare(features, model_version)

            self.logger.logger.info("Calculating prediction probabilities")
            probabilities = model.predict_proba(processed)
            inference_time = (datetime.now() - start_time).total_seconds()

            prob_stats = {
                'mean_probability': float(np.mean(probabilities)),
                'std_probability': float(np.std(probabilities)),
                'min_probability': float(np.min(probabilities)),
                'max_probability': float(np.max(probabilities)),
                'class_distribution': {
                    str(label): float(np.mean(probabilities[:, i]))
                    for i, label in enumerate(model.classes_)
                }
            }

            inference_metrics = {
                'inference_time': inference_time,
                'batch_size': len(features),
                'model_version': model_version,
                'probability_stats': prob_stats,
                'input_feature_stats': self._input_stats(features, metadata['numeric_columns'])
            }
            self.metrics_logger.log_inference_metrics(inference_metrics, model_version)
            self.check_drift(features, metadata, model_version)

            self.logger.logger.info(
                f"Completed probability predictions for {len(features)} samples in {inference_time:.3f} seconds"
            )
            return probabilities

        except Exception as e:
            self.logger.log_error(e, {
                'model_version': model_version,
                'feature_shape': features.shape,
                'step': 'probability_prediction'
            })
            raise

    def check_drift(self, features: pd.DataFrame, metadata: Dict[str, Any],
                    model_version: str) -> Dict[str, Dict[str, Any]]:
        """
        Compare input means with the training means of each numeric column.

        The shift is ``|mean_input - mean_train| / std_train``; columns whose
        training std is 0 only drift when the mean moves at all.
        """
        report = {}
        for col, stats in metadata.get('training_stats', {}).items():
            if col not in features.columns:
                continue
            input_mean = float(features[col].mean())
            shift = abs(input_mean - stats['mean'])
            if stats['std'] and not np.isnan(stats['std']):
                score = shift / stats['std']
            else:
                score = 0.0 if shift == 0 else float('inf')
            report[col] = {
                'input_mean': input_mean,
                'train_mean': stats['mean'],
                'score': score,
                'drifted': score > self.drift_threshold
            }

        drifted = [col for col, entry in report.items() if entry['drifted']]
        if drifted:
            self.logger.logger.warning(f"Input drift detected for model {model_version} in columns: {drifted}")
        self.metrics_logger.log_drift_metrics(report, model_version)
        return report

    def _validate_features(self, features: pd.DataFrame, expected_columns: List[str],
                           numeric_columns: List[str]):
        """Validate raw input features against the training columns."""
        try:
            self.logger.logger.info("Starting feature validation")

            if features.empty:
                raise ValueError("No rows to predict")

            missing_columns = [col for col in expected_columns if col not in features.columns]
            if missing_columns:
                raise ValueError(f"Missing required features: {missing_columns}")

            extra_columns = [col for col in features.columns if col not in expected_columns]
            if extra_columns:
                self.logger.logger.warning(f"Unexpected columns found: {extra_columns}")

            for col in numeric_columns:
                if not pd.api.types.is_numeric_dtype(features[col]):
                    raise ValueError(f"Column {col} must be numeric")

            null_columns = [col for col in numeric_columns if features[col].isnull().any()]
            if null_columns:
                raise ValueError(f"Features contain null values in columns: {null_columns}")

            self.logger.logger.info(
                f"Feature validation passed successfully: shape {features.shape}"
            )

        except Exception as e:
            self.logger.log_error(e, {
                'provided_columns': features.columns.tolist(),
                'expected_columns': expected_columns,
                'step': 'feature_validation'
            })
            raise
