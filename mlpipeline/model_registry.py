import io
import joblib
import json
from datetime import datetime
import os
import boto3
from typing import Any, Dict, List, Optional, Tuple
from mlpipeline.utils.logging_utils import PipelineLogger, CustomJSONEncoder, error_handler


class ModelRegistry:
    """
    Registry for managing and versioning trained models.

    Each version is a joblib artifact ``model_v<version>.joblib`` next to a
    JSON metadata document ``metadata_v<version>.json``, stored on the
    local filesystem or in an S3 bucket. Versions may be numeric or
    arbitrary strings.
    """
    def __init__(self, storage_path: str = "ml-pipeline-models", use_s3: bool = False,
                 s3_client: Optional[Any] = None):
        self.storage_path = storage_path
        self.use_s3 = use_s3
        self.logger = PipelineLogger(
            name="ModelRegistry",
            log_file="logs/model_registry.log"
        )

        if use_s3:
            self.s3 = s3_client or boto3.client('s3')
        else:
            os.makedirs(storage_path, exist_ok=True)

    @error_handler(logger=PipelineLogger(name="ModelRegistry"))
    def save_model(self, model: Any, metadata: Dict, version: str) -> None:
        """Save model and metadata with version control."""
        try:
            self.logger.logger.info(f"Saving model version {version}")
            model_key = f"model_v{version}.joblib"
            metadata_key = f"metadata_v{version}.json"

            if self.use_s3:
                buffer = io.BytesIO()
                joblib.dump(model, buffer)
                self.s3.put_object(
                    Bucket=self.storage_path,
                    Key=model_key,
                    Body=buffer.getvalue()
                )

                metadata.update({
                    'version': version,
                    'timestamp': str(datetime.now()),
                    'storage_type': 's3',
                    'bucket': self.storage_path
                })
                self.s3.put_object(
                    Bucket=self.storage_path,
                    Key=metadata_key,
                    Body=json.dumps(metadata, cls=CustomJSONEncoder)
                )

                self.logger.logger.info(f"Model version {version} saved to S3 bucket {self.storage_path}")

            else:
                model_path = os.path.join(self.storage_path, model_key)
                joblib.dump(model, model_path)

                metadata.update({
                    'version': version,
                    'timestamp': str(datetime.now()),
                    'storage_type': 'local',
                    'path': os.path.abspath(model_path)
                })
                with open(os.path.join(self.storage_path, metadata_key), 'w') as f:
                    json.dump(metadata, f, cls=CustomJSONEncoder)

                self.logger.logger.info(f"Model version {version} saved locally to {model_path}")

        except Exception as e:
            self.logger.log_error(e, {
                'version': version,
                'storage_type': 's3' if self.use_s3 else 'local',
                'step': 'model_saving'
            })
            raise

    @error_handler(logger=PipelineLogger(name="ModelRegistry"))
    def load_model(self, version: str) -> Tuple[Any, Dict]:
        """Load model and metadata for specified version."""
        try:
            self.logger.logger.info(f"Loading model version {version}")

            if self.use_s3:
                response = self.s3.get_object(
                    Bucket=self.storage_path,
                    Key=f"model_v{version}.joblib"
                )
                model = joblib.load(io.BytesIO(response['Body'].read()))

                response = self.s3.get_object(
                    Bucket=self.storage_path,
                    Key=f"metadata_v{version}.json"
                )
                metadata = json.loads(response['Body'].read())

                self.logger.logger.info(f"Successfully loaded model version {version} from S3")

            else:
                model_path = os.path.join(self.storage_path, f"model_v{version}.joblib")
                if not os.path.exists(model_path):
                    raise FileNotFoundError(f"Model version {version} not found in {self.storage_path}")
                model = joblib.load(model_path)

                with open(os.path.join(self.storage_path, f"metadata_v{version}.json"), 'r') as f:
                    metadata = json.load(f)

                self.logger.logger.info(f"Successfully loaded model version {version} from local storage")

            return model, metadata

        except Exception as e:
            self.logger.log_error(e, {
                'version': version,
                'storage_type': 's3' if self.use_s3 else 'local',
                'step': 'model_loading'
            })
            raise

    def _list_artifacts(self) -> List[Dict[str, Any]]:
        """Model artifacts as dicts of version string and write time."""
        if self.use_s3:
            response = self.s3.list_objects_v2(Bucket=self.storage_path)
            entries = [(obj['Key'], obj['LastModified'].timestamp())
                       for obj in response.get('Contents', [])]
        else:
            if not os.path.exists(self.storage_path):
                return []
            entries = [(name, os.path.getmtime(os.path.join(self.storage_path, name)))
                       for name in os.listdir(self.storage_path)]

        artifacts = []
        for name, written_at in entries:
            if not (name.startswith('model_v') and name.endswith('.joblib')):
                continue
            artifacts.append({
                'version': name[len('model_v'):-len('.joblib')],
                'written_at': written_at
            })
        return artifacts

    def list_versions(self) -> List[str]:
        """All stored versions, numeric ones first in numeric order, then by write time."""
        artifacts = self._list_artifacts()
        numeric = sorted((a for a in artifacts if a['version'].isdigit()), key=lambda a: int(a['version']))
        named = sorted((a for a in artifacts if not a['version'].isdigit()), key=lambda a: a['written_at'])
        return [a['version'] for a in numeric + named]

    @error_handler(logger=PipelineLogger(name="ModelRegistry"))
    def get_latest_version(self) -> str:
        """Get the latest model version from storage."""
        self.logger.logger.info("Retrieving latest model version")

        artifacts = self._list_artifacts()
        if not artifacts:
            self.logger.logger.info("No models found, returning version 0")
            return "0"

        numeric_versions = [a for a in artifacts if a['version'].isdigit()]
        if numeric_versions:
            latest = max(numeric_versions, key=lambda a: int(a['version']))
            self.logger.logger.info(f"Latest numeric version found: {latest['version']}")
            return latest['version']

        latest = max(artifacts, key=lambda a: a['written_at'])
        self.logger.logger.info(f"Latest string version found: {latest['version']}")
        return latest['version']
