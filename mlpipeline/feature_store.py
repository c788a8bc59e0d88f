# mlpipeline/feature_store.py

import pandas as pd
import json
from datetime import datetime
import os
import boto3
from typing import Any, Dict, Optional, Tuple
from mlpipeline.preprocessing import split_feature_types
from mlpipeline.utils.logging_utils import PipelineLogger, CustomJSONEncoder


class FeatureStore:
    """
    A storage system for managing and versioning feature data.

    Cleaned, unscaled features are stored with their labels so that every
    training run fits its own preprocessing on its own training split.
    Documents live on the local filesystem or in an S3 bucket.

    Attributes:
        storage_path (str): Local directory or S3 bucket name
        use_s3 (bool): Whether S3 storage is used
        s3: Boto3 S3 client instance (if use_s3 is True)
    """

    def __init__(self, storage_path: str = "ml-pipeline-features", use_s3: bool = False,
                 s3_client: Optional[Any] = None):
        self.storage_path = storage_path
        self.use_s3 = use_s3
        self.logger = PipelineLogger(
            name="FeatureStore",
            log_file="logs/feature_store.log"
        )

        if use_s3:
            self.s3 = s3_client or boto3.client('s3')
        else:
            os.makedirs(storage_path, exist_ok=True)

    def _key(self, version: str) -> str:
        return f"features_v{version}.json"

    def _read_document(self, version: str) -> Dict[str, Any]:
        if self.use_s3:
            response = self.s3.get_object(Bucket=self.storage_path, Key=self._key(version))
            return json.loads(response['Body'].read())
        with open(os.path.join(self.storage_path, self._key(version)), 'r') as f:
            return json.load(f)

    def save_features(self, features: pd.DataFrame, labels: pd.Series, version: str,
                      schema: Optional[Dict[str, list]] = None) -> None:
        """Save cleaned features and their labels under a version.

        The schema records which columns are numeric and which categorical;
        it is inferred from dtypes when not given.
        """
        if len(features) != len(labels):
            raise ValueError(f"Mismatched lengths: features({len(features)}) vs labels({len(labels)})")

        if schema is None:
            numeric, categorical = split_feature_types(features)
            schema = {"numeric": numeric, "categorical": categorical}
        data = {
            'features': {col: features[col].tolist() for col in features.columns},
            'labels': labels.tolist(),
            'schema': {'numeric': list(schema['numeric']), 'categorical': list(schema['categorical'])},
            'version': version,
            'timestamp': str(datetime.now())
        }
        body = json.dumps(data, cls=CustomJSONEncoder)

        try:
            if self.use_s3:
                self.s3.put_object(
                    Bucket=self.storage_path,
                    Key=self._key(version),
                    Body=body
                )
            else:
                with open(os.path.join(self.storage_path, self._key(version)), 'w') as f:
                    f.write(body)
            self.logger.logger.info(
                f"Saved features version {version} with shape {features.shape}"
            )
        except Exception as e:
            self.logger.log_error(e, {'version': version, 'step': 'save_features'})
            raise

    def load_features(self, version: str) -> Tuple[pd.DataFrame, pd.Series]:
        """Load features and labels for a specific version.

        Args:
            version (str): Version of features to load

        Returns:
            Tuple[pd.DataFrame, pd.Series]: Features and labels

        Raises:
            ValueError: If feature and label lengths don't match
            FileNotFoundError: If the version is not stored locally
        """
        try:
            data = self._read_document(version)
            features = pd.DataFrame(data['features'])
            labels = pd.Series(data['labels'])

            if len(features) != len(labels):
                raise ValueError(f"Mismatched lengths: features({len(features)}) vs labels({len(labels)})")

            self.logger.logger.info(
                f"Loaded features version {version}: features {features.shape}, labels {labels.shape}"
            )
            return features, labels

        except Exception as e:
            self.logger.log_error(e, {
                'version': version,
                'storage_type': 's3' if self.use_s3 else 'local',
                'step': 'load_features'
            })
            raise

    def load_schema(self, version: str) -> Dict[str, list]:
        """Return the numeric/categorical column split recorded for a version."""
        return self._read_document(version)['schema']

    def get_latest_version(self) -> str:
        """Get the highest integer version in storage, "0" when there is none."""
        self.logger.logger.info("Retrieving latest feature version")

        if self.use_s3:
            response = self.s3.list_objects_v2(Bucket=self.storage_path)
            names = [obj['Key'] for obj in response.get('Contents', [])]
        else:
            if not os.path.exists(self.storage_path):
                self.logger.logger.info("No feature store found, returning version 0")
                return "0"
            names = os.listdir(self.storage_path)

        version_numbers = []
        for name in names:
            if not (name.startswith('features_v') and name.endswith('.json')):
                continue
            try:
                version_numbers.append(int(name[len('features_v'):-len('.json')]))
            except ValueError:
                continue

        if not version_numbers:
            self.logger.logger.info("No feature versions found, returning version 0")
            return "0"

        latest = str(max(version_numbers))
        self.logger.logger.info(f"Latest feature version found: {latest}")
        return latest
