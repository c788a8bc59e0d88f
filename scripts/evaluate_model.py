# scripts/evaluate_model.py

import json
import sys
from mlpipeline.config import config, get_log_level
from mlpipeline.evaluation import evaluate_model, meets_threshold
from mlpipeline.feature_store import FeatureStore
from mlpipeline.model_registry import ModelRegistry
from mlpipeline.utils.logging_utils import PipelineLogger


def main() -> int:
    """
    Evaluate the latest model before promotion.

    When the latest feature version is the one the model was trained on,
    its rows include the training split, so the held-out test metrics
    recorded at training time are used. A newer feature version is scored
    in full. Writes metrics.json and returns a non-zero exit code when
    accuracy is below ACCURACY_THRESHOLD, so the model is not promoted.
    """
    logger = PipelineLogger(name="scripts.evaluate_model", level=get_log_level())

    feature_store = FeatureStore(storage_path=config.FEATURE_STORE_PATH, use_s3=config.USE_S3)
    model_registry = ModelRegistry(storage_path=config.MODEL_REGISTRY_PATH, use_s3=config.USE_S3)

    feature_version = feature_store.get_latest_version()
    model_version = model_registry.get_latest_version()
    model_bundle, metadata = model_registry.load_model(model_version)

    if str(metadata.get('feature_version')) == str(feature_version):
        logger.logger.info(
            f"Features version {feature_version} trained model version {model_version}; "
            f"using its held-out test metrics"
        )
        metrics = metadata['metrics']['test']
    else:
        logger.logger.info(f"Evaluating model version {model_version} on features version {feature_version}")
        features, labels = feature_store.load_features(feature_version)
        processed = model_bundle['preprocessor'].transform(features)
        metrics = evaluate_model(model_bundle['model'], processed, labels)

    with open('metrics.json', 'w') as f:
        json.dump(metrics, f, indent=2)

    for metric in ('accuracy', 'precision', 'recall', 'f1'):
        logger.logger.info(f"{metric}: {metrics[metric]:.3f}")

    if not meets_threshold(metrics, config.ACCURACY_THRESHOLD):
        logger.logger.error(
            f"Model accuracy {metrics['accuracy']:.3f} below threshold {config.ACCURACY_THRESHOLD}"
        )
        return 1

    logger.logger.info("Evaluation completed successfully. Model meets deployment criteria.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
