# scripts/train_model.py

from mlpipeline.config import config, get_log_level
from mlpipeline.feature_store import FeatureStore
from mlpipeline.model_registry import ModelRegistry
from mlpipeline.training_pipeline import TrainingPipeline
from mlpipeline.utils.logging_utils import PipelineLogger


def main():
    """
    Train a new model version using the latest processed features.

    Hyperparameters are grid-searched when TUNE_HYPERPARAMETERS is set.
    The model is stored in the registry under the next integer version.

    Raises:
        ValueError: If no features are available or training fails
    """
    logger = PipelineLogger(name="scripts.train_model", level=get_log_level())

    feature_store = FeatureStore(storage_path=config.FEATURE_STORE_PATH, use_s3=config.USE_S3)
    model_registry = ModelRegistry(storage_path=config.MODEL_REGISTRY_PATH, use_s3=config.USE_S3)
    pipeline = TrainingPipeline(feature_store, model_registry)

    feature_version = feature_store.get_latest_version()
    if feature_version == "0":
        raise ValueError("No feature versions found, run scripts/process_features.py first")
    model_version = str(int(model_registry.get_latest_version()) + 1)

    model, metadata = pipeline.train(feature_version, model_version, tune=config.TUNE_HYPERPARAMETERS)

    logger.logger.info(f"Trained model version {model_version} on features version {feature_version}")
    logger.logger.info(f"Test metrics: {metadata['metrics']['test']}")


if __name__ == "__main__":
    main()
