import numpy as np
import pandas as pd
import pytest
from mlpipeline.cleaning import clean_data, fill_categorical


@pytest.fixture
def small_frame():
    return pd.DataFrame({
        'a': [1.0, 2.0, 3.0, 4.0, None, 100.0],
        'b': ['x', 'y', None, 'x', 'y', 'x']
    })


def test_clean_data_imputes_mean_and_drops_outliers(small_frame):
    cleaned = clean_data(small_frame)

    # mean of the observed values (1, 2, 3, 4, 100) is 22; 100 lies above Q3 + 1.5 * IQR
    assert cleaned['a'].tolist() == [1.0, 2.0, 3.0, 4.0, 22.0]
    assert cleaned['b'].tolist() == ['x', 'y', None, 'x', 'y']
    assert cleaned.index.tolist() == list(range(5))


def test_clean_data_does_not_mutate_input(small_frame):
    original = small_frame.copy()
    clean_data(small_frame)
    pd.testing.assert_frame_equal(small_frame, original)


def test_clean_data_wider_band_keeps_rows(small_frame):
    cleaned = clean_data(small_frame, iqr_factor=10)
    assert len(cleaned) == len(small_frame)
    assert not cleaned['a'].isnull().any()


def test_clean_data_only_given_columns():
    df = pd.DataFrame({'a': [1, 2, 3, 4, 1000], 'b': [1, 2, 3, 4, 5]})
    assert len(clean_data(df, columns=['b'])) == 5
    assert len(clean_data(df, columns=['a'])) == 4


def test_clean_data_constant_column_keeps_all_rows():
    df = pd.DataFrame({'a': [5, 5, 5, 5], 'b': [1, 2, 3, 4]})
    assert len(clean_data(df)) == 4


def test_clean_data_all_null_column_left_unimputed():
    df = pd.DataFrame({'a': [np.nan, np.nan, np.nan], 'b': [1.0, 2.0, 3.0]})
    cleaned = clean_data(df)
    assert cleaned['a'].isnull().all()
    assert cleaned['b'].tolist() == [1.0, 2.0, 3.0]


def test_clean_data_rejects_bad_arguments(small_frame):
    with pytest.raises(ValueError, match="iqr_factor"):
        clean_data(small_frame, iqr_factor=0)
    with pytest.raises(ValueError, match="not found"):
        clean_data(small_frame, columns=['missing'])


def test_fill_categorical(small_frame):
    filled = fill_categorical(small_frame, ['b'])
    assert filled['b'].tolist() == ['x', 'y', 'missing', 'x', 'y', 'x']
    assert small_frame['b'].isnull().sum() == 1
