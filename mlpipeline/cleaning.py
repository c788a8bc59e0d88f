from typing import List, Optional
import pandas as pd
from mlpipeline.utils.logging_utils import PipelineLogger

logger = PipelineLogger(name="DataCleaning")


def clean_data(df: pd.DataFrame, columns: Optional[List[str]] = None,
               iqr_factor: float = 1.5) -> pd.DataFrame:
    """
    Impute missing numeric values with the column mean and drop IQR outliers.

    A row is dropped when any of the given columns falls outside
    ``[Q1 - iqr_factor * IQR, Q3 + iqr_factor * IQR]``.

    Args:
        df: Input frame, left unmodified
        columns: Numeric columns to clean, defaults to every numeric column
        iqr_factor: Width of the accepted band in IQR units

    Returns:
        pd.DataFrame: Cleaned copy re-indexed from 0
    """
    if iqr_factor <= 0:
        raise ValueError(f"iqr_factor must be positive, got {iqr_factor}")

    cleaned = df.copy()
    if columns is None:
        columns = cleaned.select_dtypes(include='number').columns.tolist()
    missing = [col for col in columns if col not in cleaned.columns]
    if missing:
        raise ValueError(f"Columns not found for cleaning: {missing}")
    if not columns:
        return cleaned.reset_index(drop=True)

    means = cleaned[columns].mean()
    empty_columns = means[means.isnull()].index.tolist()
    if empty_columns:
        logger.logger.warning(f"Columns with no values left unimputed: {empty_columns}")
    cleaned[columns] = cleaned[columns].fillna(means)

    q1 = cleaned[columns].quantile(0.25)
    q3 = cleaned[columns].quantile(0.75)
    iqr = q3 - q1
    outliers = ((cleaned[columns] < (q1 - iqr_factor * iqr)) |
                (cleaned[columns] > (q3 + iqr_factor * iqr))).any(axis=1)

    logger.logger.info(
        f"Imputed {int(df[columns].isnull().sum().sum())} values, "
        f"dropped {int(outliers.sum())} outlier rows of {len(cleaned)}"
    )
    return cleaned[~outliers].reset_index(drop=True)


def fill_categorical(df: pd.DataFrame, columns: List[str],
                     fill_value: str = "missing") -> pd.DataFrame:
    """Replace nulls in categorical columns with a sentinel category."""
    filled = df.copy()
    for col in columns:
        filled[col] = filled[col].astype(object).where(filled[col].notnull(), fill_value)
    return filled
