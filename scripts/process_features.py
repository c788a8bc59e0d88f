# scripts/process_features.py

from mlpipeline.config import config, get_log_level
from mlpipeline.data_collection import load_raw_data
from mlpipeline.feature_store import FeatureStore
from mlpipeline.feature_pipeline import FeaturePipeline
from mlpipeline.utils.logging_utils import PipelineLogger


def main():
    """
    Process new raw data into a new feature version.

    Loads raw data from RAW_DATA_PATH, cleans it through the feature
    pipeline and stores the result in the feature store under the next
    integer version.

    Raises:
        ValueError: If data validation or processing fails
    """
    logger = PipelineLogger(name="scripts.process_features", level=get_log_level())

    feature_store = FeatureStore(storage_path=config.FEATURE_STORE_PATH, use_s3=config.USE_S3)
    pipeline = FeaturePipeline(feature_store, target_column=config.TARGET_COLUMN)

    raw_data = load_raw_data(config.RAW_DATA_PATH)

    version = str(int(feature_store.get_latest_version()) + 1)
    features, labels = pipeline.process_data(raw_data, version)

    logger.logger.info(f"Processed features version {version}: {len(features)} rows")


if __name__ == "__main__":
    main()
