import io
import os
from typing import Any, Optional, Tuple
import boto3
import pandas as pd
from mlpipeline.utils.logging_utils import PipelineLogger, error_handler

SUPPORTED_FORMATS = ('.csv', '.json', '.parquet')

logger = PipelineLogger(name="DataCollection")


def _split_s3_uri(uri: str) -> Tuple[str, str]:
    bucket, _, key = uri[len("s3://"):].partition('/')
    if not bucket or not key:
        raise ValueError(f"Invalid S3 URI: {uri}")
    return bucket, key


def _read_frame(handle: Any, extension: str) -> pd.DataFrame:
    if extension == '.csv':
        return pd.read_csv(handle)
    if extension == '.json':
        return pd.read_json(handle, orient='records')
    return pd.read_parquet(handle)


@error_handler(logger=logger)
def load_raw_data(source: str, s3_client: Optional[Any] = None) -> pd.DataFrame:
    """
    Load raw tabular data from a local file or an S3 object.

    Args:
        source: Local path or ``s3://bucket/key`` URI ending in .csv, .json or .parquet
        s3_client: Optional boto3 S3 client, created on demand for S3 sources

    Returns:
        pd.DataFrame: The loaded rows

    Raises:
        ValueError: If the format is unsupported or nothing was loaded
        FileNotFoundError: If a local source does not exist
    """
    extension = os.path.splitext(source)[1].lower()
    if extension not in SUPPORTED_FORMATS:
        raise ValueError(f"Unsupported data format '{extension}' for {source}")

    logger.logger.info(f"Loading raw data from {source}")

    if source.startswith("s3://"):
        bucket, key = _split_s3_uri(source)
        client = s3_client or boto3.client('s3')
        response = client.get_object(Bucket=bucket, Key=key)
        body = response['Body'].read()
        if extension == '.parquet':
            data = _read_frame(io.BytesIO(body), extension)
        else:
            data = _read_frame(io.StringIO(body.decode('utf-8')), extension)
    else:
        if not os.path.exists(source):
            raise FileNotFoundError(f"Raw data not found: {source}")
        data = _read_frame(source, extension)

    if data.empty:
        raise ValueError(f"No rows loaded from {source}")

    logger.logger.info(f"Loaded raw data with shape {data.shape} from {source}")
    return data
