"""
HTTP prediction endpoint.

    POST /predict  {"features": {...} | [...] | [{...}, ...]}  ->  {"prediction": ...}
    GET  /health
"""
from typing import Any, Dict, List, Optional, Tuple, Union
import pandas as pd
from botocore.exceptions import ClientError
from fastapi import FastAPI, HTTPException
from pydantic import BaseModel
from mlpipeline.config import config
from mlpipeline.feature_store import FeatureStore
from mlpipeline.inference_pipeline import InferencePipeline
from mlpipeline.model_registry import ModelRegistry
from mlpipeline.utils.logging_utils import PipelineLogger

MISSING_OBJECT_CODES = ("NoSuchKey", "404")


class PredictRequest(BaseModel):
    # one row as a mapping, one row as ordered values, or a batch of mappings
    features: Union[Dict[str, Any], List[Any]]


class PredictResponse(BaseModel):
    prediction: Any
    model_version: str


def features_to_frame(features: Union[Dict[str, Any], List[Any]],
                      feature_columns: List[str]) -> Tuple[pd.DataFrame, bool]:
    """Build the input frame for a request and tell whether it is a batch."""
    if isinstance(features, dict):
        return pd.DataFrame([features]), False

    if features and all(isinstance(row, dict) for row in features):
        return pd.DataFrame(features), True

    if any(isinstance(value, (dict, list)) for value in features):
        raise ValueError("features must be a mapping, a list of values or a list of mappings")
    if len(features) != len(feature_columns):
        raise ValueError(
            f"Expected {len(feature_columns)} feature values ({feature_columns}), got {len(features)}"
        )
    return pd.DataFrame([features], columns=feature_columns), False


def create_app(inference_pipeline: InferencePipeline, model_version: str) -> FastAPI:
    """Build the FastAPI application serving one model version."""
    logger = PipelineLogger(name="Serving", log_file="logs/serving.log")
    app = FastAPI(
        title="ML Pipeline Prediction API",
        description="Serves predictions from a model version in the model registry.",
        version="0.2.0"
    )

    def _unavailable(error: Exception) -> HTTPException:
        logger.log_error(error, {'model_version': model_version, 'step': 'model_loading'})
        return HTTPException(status_code=503, detail=f"Model version {model_version} is not available")

    def _metadata() -> Dict[str, Any]:
        try:
            _, metadata = inference_pipeline.load_bundle(model_version)
        except FileNotFoundError as e:
            raise _unavailable(e)
        except ClientError as e:
            if e.response.get('Error', {}).get('Code') not in MISSING_OBJECT_CODES:
                raise
            raise _unavailable(e)
        return metadata

    @app.get("/health", tags=["monitoring"])
    def health():
        _metadata()
        return {"status": "ok", "model_version": model_version}

    @app.post("/predict", response_model=PredictResponse, tags=["inference"])
    def predict(request: PredictRequest):
        metadata = _metadata()
        try:
            frame, is_batch = features_to_frame(request.features, metadata['feature_columns'])
            predictions = inference_pipeline.predict(frame, model_version)
        except ValueError as e:
            logger.logger.warning(f"Rejected prediction request: {e}")
            raise HTTPException(status_code=422, detail=str(e))

        values = predictions.tolist()
        prediction = values if is_batch else values[0]
        logger.logger.info(f"Served {len(values)} predictions with model {model_version}")
        return {"prediction": prediction, "model_version": model_version}

    return app


def create_app_from_config(model_version: Optional[str] = None) -> FastAPI:
    """
    Wire stores and registry from Config; "latest" resolves to the newest model.

    Usable directly as an ASGI factory:
    ``uvicorn --factory mlpipeline.serving:create_app_from_config``
    """
    feature_store = FeatureStore(storage_path=config.FEATURE_STORE_PATH, use_s3=config.USE_S3)
    model_registry = ModelRegistry(storage_path=config.MODEL_REGISTRY_PATH, use_s3=config.USE_S3)

    model_version = model_version or config.MODEL_VERSION
    if model_version == "latest":
        model_version = model_registry.get_latest_version()

    return create_app(InferencePipeline(feature_store, model_registry), model_version)
