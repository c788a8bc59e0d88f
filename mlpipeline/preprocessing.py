from typing import List, Optional, Tuple
import numpy as np
import pandas as pd
from sklearn.preprocessing import OneHotEncoder, StandardScaler


def _require_columns(df: pd.DataFrame, columns: List[str]):
    missing = [col for col in columns if col not in df.columns]
    if missing:
        raise ValueError(f"Missing required features: {missing}")


def _category_label(value) -> str:
    # integer codes read back as floats when the column had gaps
    if isinstance(value, (float, np.floating)) and float(value).is_integer():
        return str(int(value))
    return str(value)


def split_feature_types(df: pd.DataFrame) -> Tuple[List[str], List[str]]:
    """Split columns into (numeric, categorical); booleans count as categorical."""
    numeric, categorical = [], []
    for col in df.columns:
        if pd.api.types.is_numeric_dtype(df[col]) and not pd.api.types.is_bool_dtype(df[col]):
            numeric.append(col)
        else:
            categorical.append(col)
    return numeric, categorical


def process_numeric_features(df: pd.DataFrame, columns: List[str],
                             scaler: Optional[StandardScaler] = None
                             ) -> Tuple[pd.DataFrame, StandardScaler]:
    """
    Standard-scale numeric columns.

    A fresh scaler is fitted when none is given; a fitted scaler is only
    applied, so test and serving data reuse the training statistics.
    """
    _require_columns(df, columns)
    processed = df.copy()
    if not columns:
        return processed, scaler if scaler is not None else StandardScaler()

    if scaler is None:
        scaler = StandardScaler()
        processed[columns] = scaler.fit_transform(processed[columns].astype(float))
    else:
        processed[columns] = scaler.transform(processed[columns].astype(float))
    return processed, scaler


def encode_categorical(df: pd.DataFrame, columns: List[str],
                       encoder: Optional[OneHotEncoder] = None
                       ) -> Tuple[pd.DataFrame, Optional[OneHotEncoder]]:
    """
    One-hot encode categorical columns.

    The original columns are replaced by ``<column>_<category>`` indicator
    columns. Values are compared as text, with integral floats written
    without a decimal part so ``3.0`` and ``3`` are the same category.
    Categories unseen by a fitted encoder encode as all zeros.
    """
    _require_columns(df, columns)
    if not columns:
        return df.copy(), encoder

    values = df[columns].apply(lambda col: col.map(_category_label))
    if encoder is None:
        encoder = OneHotEncoder(handle_unknown='ignore', sparse_output=False)
        encoded = encoder.fit_transform(values)
    else:
        encoded = encoder.transform(values)

    encoded_df = pd.DataFrame(
        encoded,
        columns=encoder.get_feature_names_out(columns),
        index=df.index
    )
    return pd.concat([df.drop(columns=columns), encoded_df], axis=1), encoder


class FeaturePreprocessor:
    """
    Fitted scaling and encoding shared by training and serving.

    Attributes:
        numeric_columns (list): Columns standard-scaled
        categorical_columns (list): Columns one-hot encoded
        scaler (StandardScaler): Fitted scaler
        encoder (OneHotEncoder): Fitted encoder, None without categorical columns
        feature_names_ (list): Ordered model input columns after transformation
    """
    def __init__(self, numeric_columns: Optional[List[str]] = None,
                 categorical_columns: Optional[List[str]] = None):
        self.numeric_columns = numeric_columns
        self.categorical_columns = categorical_columns
        self.scaler = None
        self.encoder = None
        self.feature_names_ = None

    @property
    def input_columns(self) -> List[str]:
        return list(self.numeric_columns or []) + list(self.categorical_columns or [])

    def fit_transform(self, df: pd.DataFrame) -> pd.DataFrame:
        if self.numeric_columns is None or self.categorical_columns is None:
            numeric, categorical = split_feature_types(df)
            if self.numeric_columns is None:
                self.numeric_columns = [c for c in numeric if c not in (self.categorical_columns or [])]
            if self.categorical_columns is None:
                self.categorical_columns = [c for c in df.columns if c not in self.numeric_columns]

        frame = df[self.input_columns]
        frame, self.scaler = process_numeric_features(frame, self.numeric_columns)
        frame, self.encoder = encode_categorical(frame, self.categorical_columns)
        self.feature_names_ = frame.columns.tolist()
        return frame

    def transform(self, df: pd.DataFrame) -> pd.DataFrame:
        if self.feature_names_ is None:
            raise RuntimeError("FeaturePreprocessor must be fitted before transform")
        _require_columns(df, self.input_columns)

        frame = df[self.input_columns]
        frame, _ = process_numeric_features(frame, self.numeric_columns, self.scaler)
        frame, _ = encode_categorical(frame, self.categorical_columns, self.encoder)
        return frame[self.feature_names_]
