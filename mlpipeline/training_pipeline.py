# mlpipeline/training_pipeline.py
from typing import Tuple, Dict, Any, List, Optional
from sklearn.model_selection import train_test_split
from sklearn.ensemble import RandomForestClassifier
from mlpipeline.evaluation import evaluate_model
from mlpipeline.feature_store import FeatureStore
from mlpipeline.hyperparameter_tuning import optimize_hyperparameters
from mlpipeline.model_registry import ModelRegistry
from mlpipeline.preprocessing import FeaturePreprocessor
from mlpipeline.utils.logging_utils import PipelineLogger, error_handler, MetricsLogger, to_json_safe
import pandas as pd
from datetime import datetime


class TrainingPipeline:
    """
    Pipeline for training and evaluating machine learning models.

    Loads a feature version, splits it, fits preprocessing on the training
    split only, trains (optionally grid-searching hyperparameters),
    evaluates and stores the model bundle in the registry.

    Attributes:
        feature_store (FeatureStore): Instance for loading training data
        model_registry (ModelRegistry): Instance for storing trained models
        model: Most recently trained classifier
        preprocessor (FeaturePreprocessor): Preprocessing fitted with the model
    """
    def __init__(self, feature_store: FeatureStore, model_registry: ModelRegistry,
                 test_size: float = 0.2, random_state: int = 42,
                 param_grid: Optional[Dict[str, List[Any]]] = None):
        self.feature_store = feature_store
        self.model_registry = model_registry
        self.test_size = test_size
        self.random_state = random_state
        self.param_grid = param_grid
        self.model = None
        self.preprocessor = None
        self.logger = PipelineLogger(
            name="TrainingPipeline",
            log_file="logs/training_pipeline.log"
        )
        self.metrics_logger = MetricsLogger(self.logger)

    def _build_default_model(self) -> RandomForestClassifier:
        return RandomForestClassifier(
            n_estimators=100,
            max_depth=5,
            min_samples_leaf=2,
            min_samples_split=5,
            class_weight='balanced',
            random_state=self.random_state
        )

    def _split(self, features: pd.DataFrame, labels: pd.Series):
        stratify = labels if labels.value_counts().min() >= 2 else None
        if stratify is None:
            self.logger.logger.warning("A class has fewer than 2 samples, splitting without stratification")
        return train_test_split(
            features, labels,
            test_size=self.test_size,
            random_state=self.random_state,
            stratify=stratify
        )

    @error_handler(logger=PipelineLogger(name="TrainingPipeline"))
    def train(self, feature_version: str, model_version: str, tune: bool = False) -> Tuple[Any, Dict]:
        """Train a new model using specified feature version."""
        try:
            self.logger.logger.info(f"Starting model training for version {model_version}")
            features, labels = self.feature_store.load_features(feature_version)
            schema = self.feature_store.load_schema(feature_version)

            if len(features) == 0 or len(labels) == 0:
                raise ValueError(f"No data found for feature version {feature_version}")

            self.logger.logger.info(f"Loaded {len(features)} samples for training")

            # Split before fitting any preprocessing so test statistics never leak
            X_train, X_test, y_train, y_test = self._split(features, labels)

            self.preprocessor = FeaturePreprocessor(
                numeric_columns=schema['numeric'],
                categorical_columns=schema['categorical']
            )
            X_train_processed = self.preprocessor.fit_transform(X_train)
            X_test_processed = self.preprocessor.transform(X_test)

            self.logger.logger.info(
                f"Training split: {len(X_train)} samples, Test split: {len(X_test)} samples, "
                f"{len(self.preprocessor.feature_names_)} model inputs"
            )

            tuning = None
            if tune:
                self.model, best_params, best_score = optimize_hyperparameters(
                    X_train_processed, y_train, param_grid=self.param_grid
                )
                tuning = {'best_params': best_params, 'cv_score': best_score}
            else:
                self.model = self._build_default_model()
                self.logger.logger.info(f"Training model with parameters: {self.model.get_params()}")
                self.model.fit(X_train_processed, y_train)
            self.logger.logger.info("Model training completed")

            metrics = {
                'train': evaluate_model(self.model, X_train_processed, y_train),
                'test': evaluate_model(self.model, X_test_processed, y_test),
                'feature_importance': self._get_feature_importance(self.preprocessor.feature_names_)
            }
            self.logger.logger.info(
                f"Model performance - Train: {metrics['train']['accuracy']:.3f}, "
                f"Test: {metrics['test']['accuracy']:.3f}"
            )
            self.metrics_logger.log_training_metrics(metrics, model_version)

            numeric_train = X_train[self.preprocessor.numeric_columns]
            metadata = to_json_safe({
                'feature_version': feature_version,
                'metrics': metrics,
                'model_type': type(self.model).__name__,
                'model_params': self.model.get_params(),
                'tuned': tune,
                'tuning': tuning,
                'feature_columns': self.preprocessor.input_columns,
                'numeric_columns': self.preprocessor.numeric_columns,
                'categorical_columns': self.preprocessor.categorical_columns,
                'engineered_features': self.preprocessor.feature_names_,
                'classes': self.model.classes_.tolist(),
                'version': model_version,
                'timestamp': str(datetime.now()),
                'data_split': {
                    'train_size': len(X_train),
                    'test_size': len(X_test),
                    'train_distribution': {str(k): v for k, v in y_train.value_counts().items()},
                    'test_distribution': {str(k): v for k, v in y_test.value_counts().items()}
                },
                'training_stats': {
                    col: {
                        'mean': float(numeric_train[col].mean()),
                        'std': float(numeric_train[col].std(ddof=0))
                    }
                    for col in numeric_train.columns
                }
            })

            model_bundle = {
                'model': self.model,
                'preprocessor': self.preprocessor
            }
            self.model_registry.save_model(model_bundle, metadata, model_version)

            self.logger.logger.info(f"Model version {model_version} saved successfully")
            return self.model, metadata

        except Exception as e:
            self.logger.log_error(e, {
                'feature_version': feature_version,
                'model_version': model_version,
                'step': 'model_training'
            })
            raise

    def _get_feature_importance(self, feature_names: list) -> Dict:
        """Map model inputs to importance values, empty when the model has none."""
        if hasattr(self.model, 'feature_importances_'):
            return dict(zip(feature_names, self.model.feature_importances_.tolist()))
        return {}
