import os
import numpy as np
import pandas as pd


def create_test_data(n_samples: int = 200, seed: int = 42) -> pd.DataFrame:
    """Sample table with numeric and categorical columns and a few gaps."""
    rng = np.random.default_rng(seed)
    income = rng.normal(50000, 12000, n_samples).round(2)
    age = rng.integers(18, 75, n_samples).astype(float)
    region = rng.choice(['north', 'south', 'east', 'west'], n_samples)
    plan = rng.choice(['basic', 'premium'], n_samples)

    score = (income - 50000) / 12000 + (plan == 'premium') * 0.8 + rng.normal(0, 0.5, n_samples)
    data = pd.DataFrame({
        'income': income,
        'age': age,
        'region': region,
        'plan': plan,
        'target': (score > 0.4).astype(int)
    })

    # Gaps for the cleaning stage to impute
    data.loc[rng.choice(n_samples, 5, replace=False), 'age'] = np.nan
    data.loc[rng.choice(n_samples, 3, replace=False), 'region'] = None
    return data


if __name__ == "__main__":
    os.makedirs('data', exist_ok=True)
    create_test_data().to_csv('data/raw_data.csv', index=False)
    print("Test data has been created in data/raw_data.csv")
