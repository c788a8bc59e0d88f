# mlpipeline/feature_pipeline.py

from typing import Tuple, Dict, Any, List, Optional
import pandas as pd
from mlpipeline.cleaning import clean_data, fill_categorical
from mlpipeline.feature_store import FeatureStore
from mlpipeline.preprocessing import split_feature_types
from mlpipeline.utils.logging_utils import PipelineLogger, error_handler, MetricsLogger


class FeaturePipeline:
    """
    Turns raw tabular data into versioned, cleaned features.

    Feature columns default to every column except the target; numeric and
    categorical columns are inferred from dtypes unless given explicitly.
    """
    def __init__(self, feature_store: FeatureStore, target_column: str = "target",
                 numeric_columns: Optional[List[str]] = None,
                 categorical_columns: Optional[List[str]] = None,
                 iqr_factor: float = 1.5):
        self.feature_store = feature_store
        self.target_column = target_column
        self.numeric_columns = numeric_columns
        self.categorical_columns = categorical_columns
        self.iqr_factor = iqr_factor
        self.logger = PipelineLogger(
            name="FeaturePipeline",
            log_file="logs/feature_pipeline.log"
        )
        self.metrics_logger = MetricsLogger(self.logger)

    @error_handler(logger=PipelineLogger(name="FeaturePipeline"))
    def process_data(self, raw_data: pd.DataFrame, version: str) -> Tuple[pd.DataFrame, pd.Series]:
        """Validate, clean and store raw data as a feature version."""
        self.logger.logger.info(f"Starting feature processing for version {version}")

        self.validate_data(raw_data)

        quality_metrics = self._calculate_data_quality_metrics(raw_data)
        self.metrics_logger.log_data_metrics(quality_metrics, version)

        numeric, categorical = self._resolve_columns(raw_data)
        features, labels = self._engineer_features(raw_data, numeric, categorical)

        feature_metrics = self._calculate_feature_metrics(features, numeric)
        self.metrics_logger.log_data_metrics(feature_metrics, version)

        self.feature_store.save_features(
            features, labels, version,
            schema={'numeric': numeric, 'categorical': categorical}
        )
        self.logger.logger.info(f"Completed feature processing for version {version}")

        return features, labels

    def _resolve_columns(self, data: pd.DataFrame) -> Tuple[List[str], List[str]]:
        candidates = data.drop(columns=[self.target_column])
        inferred_numeric, inferred_categorical = split_feature_types(candidates)
        if self.numeric_columns is None and self.categorical_columns is None:
            return inferred_numeric, inferred_categorical

        categorical = self.categorical_columns
        numeric = self.numeric_columns
        if numeric is None:
            numeric = [c for c in inferred_numeric if c not in categorical]
        if categorical is None:
            categorical = [c for c in inferred_categorical if c not in numeric]
        return list(numeric), list(categorical)

    def _calculate_data_quality_metrics(self, data: pd.DataFrame) -> Dict[str, Any]:
        """Calculate data quality metrics."""
        return {
            'row_count': len(data),
            'null_counts': data.isnull().sum().to_dict(),
            'duplicates': int(data.duplicated().sum()),
            'column_types': data.dtypes.astype(str).to_dict(),
            'target_distribution': data[self.target_column].value_counts().to_dict()
        }

    def _calculate_feature_metrics(self, features: pd.DataFrame, numeric: List[str]) -> Dict[str, Any]:
        """Calculate feature statistics."""
        numeric_features = features[numeric]
        return {
            'row_count': len(features),
            'means': numeric_features.mean().to_dict(),
            'stds': numeric_features.std().to_dict(),
            'mins': numeric_features.min().to_dict(),
            'maxs': numeric_features.max().to_dict(),
            'cardinality': {col: int(features[col].nunique()) for col in features.columns
                            if col not in numeric}
        }

    def _engineer_features(self, data: pd.DataFrame, numeric: List[str],
                           categorical: List[str]) -> Tuple[pd.DataFrame, pd.Series]:
        """Fill categorical gaps, impute numeric gaps and drop outlier rows."""
        self.logger.logger.info("Starting feature engineering")

        try:
            frame = data[numeric + categorical + [self.target_column]]
            frame = fill_categorical(frame, categorical)
            frame = clean_data(frame, columns=numeric, iqr_factor=self.iqr_factor)

            if frame.empty:
                raise ValueError("No rows left after cleaning")

            removed = len(data) - len(frame)
            self.logger.logger.info(
                f"Feature engineering completed successfully: {len(frame)} rows kept, {removed} removed"
            )
            return frame[numeric + categorical], frame[self.target_column]

        except Exception as e:
            self.logger.log_error(e, {'step': 'feature_engineering'})
            raise

    def validate_data(self, data: pd.DataFrame) -> bool:
        """Check required columns, the target and configured column types."""
        try:
            required_columns = [self.target_column] + list(self.numeric_columns or []) \
                + list(self.categorical_columns or [])
            missing_columns = [col for col in required_columns if col not in data.columns]
            if missing_columns:
                raise ValueError(f"Missing required columns: {missing_columns}")

            if len(data.columns) < 2:
                raise ValueError("Data must contain at least one feature column besides the target")

            if data[self.target_column].isnull().any():
                raise ValueError(f"Target column '{self.target_column}' contains null values")

            if data[self.target_column].nunique() < 2:
                raise ValueError(f"Target column '{self.target_column}' needs at least two classes")

            for col in self.numeric_columns or []:
                if not pd.api.types.is_numeric_dtype(data[col]):
                    raise ValueError(f"Column '{col}' must be numeric")

            self.logger.logger.info("Data validation passed successfully")
            return True

        except Exception as e:
            self.logger.log_error(e, {'step': 'data_validation'})
            raise
