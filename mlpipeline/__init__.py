# mlpipeline/__init__.py
"""
Machine Learning Pipeline Package

Implements the stages of a tabular classification pipeline:
- Data collection from local files or S3
- Cleaning (mean imputation, IQR outlier filtering)
- Feature engineering (standard scaling, one-hot encoding)
- Training with optional grid-search hyperparameter tuning
- Evaluation with standard classification metrics
- Deployment behind an HTTP prediction endpoint
- Monitoring through metric and drift logs

Main Components:
- FeatureStore: Versioned storage of cleaned features
- FeaturePipeline: Validates and cleans raw data into features
- ModelRegistry: Versioned storage of model bundles and metadata
- TrainingPipeline: Splits, preprocesses, trains and evaluates
- InferencePipeline: Validates inputs, predicts and reports drift

Storage works against the local filesystem or AWS S3.
"""
