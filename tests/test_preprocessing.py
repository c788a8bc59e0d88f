import numpy as np
import pandas as pd
import pytest
from mlpipeline.cleaning import fill_categorical
from mlpipeline.preprocessing import (
    FeaturePreprocessor, encode_categorical, process_numeric_features, split_feature_types
)


@pytest.fixture
def frame():
    return pd.DataFrame({
        'size': [1.0, 2.0, 3.0, 4.0],
        'count': [10, 20, 30, 40],
        'color': ['red', 'blue', 'red', 'green'],
        'flag': [True, False, True, False]
    })


def test_split_feature_types(frame):
    numeric, categorical = split_feature_types(frame)
    assert numeric == ['size', 'count']
    assert categorical == ['color', 'flag']


def test_process_numeric_features_fits_scaler(frame):
    scaled, scaler = process_numeric_features(frame, ['size', 'count'])

    assert np.allclose(scaled[['size', 'count']].mean(), 0)
    assert np.allclose(scaled[['size', 'count']].std(ddof=0), 1)
    assert scaled['color'].tolist() == frame['color'].tolist()
    assert frame['size'].tolist() == [1.0, 2.0, 3.0, 4.0]
    assert scaler.mean_.tolist() == [2.5, 25.0]


def test_process_numeric_features_reuses_fitted_scaler(frame):
    _, scaler = process_numeric_features(frame, ['size', 'count'])
    new = pd.DataFrame({'size': [2.5], 'count': [25]})

    transformed, same_scaler = process_numeric_features(new, ['size', 'count'], scaler)

    assert same_scaler is scaler
    assert np.allclose(transformed.values, 0)


def test_process_numeric_features_missing_column(frame):
    with pytest.raises(ValueError, match="Missing required features"):
        process_numeric_features(frame, ['weight'])


def test_encode_categorical(frame):
    encoded, encoder = encode_categorical(frame, ['color'])

    assert 'color' not in encoded.columns
    assert {'color_blue', 'color_green', 'color_red'} <= set(encoded.columns)
    assert encoded['color_red'].tolist() == [1.0, 0.0, 1.0, 0.0]
    assert encoded['size'].tolist() == frame['size'].tolist()


def test_encode_categorical_unknown_category_is_all_zero(frame):
    _, encoder = encode_categorical(frame, ['color'])
    new = pd.DataFrame({'color': ['purple']})

    encoded, _ = encode_categorical(new, ['color'], encoder)

    assert encoded.iloc[0].tolist() == [0.0, 0.0, 0.0]


def test_encode_categorical_without_columns(frame):
    encoded, encoder = encode_categorical(frame, [])
    assert encoder is None
    pd.testing.assert_frame_equal(encoded, frame)


def test_feature_preprocessor_round_trip(frame):
    preprocessor = FeaturePreprocessor(numeric_columns=['size', 'count'],
                                       categorical_columns=['color', 'flag'])
    fitted = preprocessor.fit_transform(frame)

    # columns in a different order still come back in training order
    transformed = preprocessor.transform(frame[['flag', 'color', 'count', 'size']])

    assert transformed.columns.tolist() == preprocessor.feature_names_
    np.testing.assert_allclose(transformed.values, fitted.values)


def test_feature_preprocessor_infers_column_types(frame):
    preprocessor = FeaturePreprocessor()
    preprocessor.fit_transform(frame)
    assert preprocessor.numeric_columns == ['size', 'count']
    assert preprocessor.categorical_columns == ['color', 'flag']


def test_feature_preprocessor_requires_fit(frame):
    with pytest.raises(RuntimeError):
        FeaturePreprocessor().transform(frame)


def test_feature_preprocessor_missing_input(frame):
    preprocessor = FeaturePreprocessor()
    preprocessor.fit_transform(frame)
    with pytest.raises(ValueError, match="color"):
        preprocessor.transform(frame.drop(columns=['color']))


def test_integer_codes_with_gaps_match_integer_input():
    # one gap turns the integer tier codes into floats at training time
    train = fill_categorical(pd.DataFrame({
        'size': [1.0, 2.0, 3.0, 4.0, 5.0, 6.0],
        'tier': [1, 2, np.nan, 3, 1, 2]
    }), ['tier'])
    preprocessor = FeaturePreprocessor(numeric_columns=['size'], categorical_columns=['tier'])
    preprocessor.fit_transform(train)

    assert preprocessor.feature_names_ == ['size', 'tier_1', 'tier_2', 'tier_3', 'tier_missing']

    transformed = preprocessor.transform(pd.DataFrame({'size': [3.0], 'tier': [3]}))

    assert transformed.iloc[0][['tier_1', 'tier_2', 'tier_3', 'tier_missing']].tolist() == [0.0, 0.0, 1.0, 0.0]
