import io
from datetime import datetime, timezone
import numpy as np
import pandas as pd
import pytest
from botocore.exceptions import ClientError


@pytest.fixture(autouse=True)
def workdir(tmp_path, monkeypatch):
    """Run every test inside its own directory so stores and logs stay isolated."""
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def sample_data():
    """
    100 rows with two numeric columns, one categorical column and a
    binary target that is fully determined by x1.
    """
    return pd.DataFrame({
        'x1': range(100),
        'x2': [float(v) for v in range(200, 100, -1)],
        'segment': ['a', 'b', 'c', 'd'] * 25,
        'target': [0] * 50 + [1] * 50
    })


@pytest.fixture
def messy_data(sample_data):
    """sample_data with gaps and one extreme outlier row."""
    data = sample_data.copy()
    data['x2'] = data['x2'].astype(float)
    data.loc[[3, 40, 77], 'x2'] = np.nan
    data.loc[[5, 60], 'segment'] = None
    data.loc[10, 'x1'] = 10_000
    return data


class FakeS3Client:
    """In-memory stand-in for the boto3 S3 client calls the stores make."""
    def __init__(self):
        self.objects = {}

    def put_object(self, Bucket, Key, Body):
        if isinstance(Body, str):
            Body = Body.encode('utf-8')
        self.objects[(Bucket, Key)] = (Body, datetime.now(timezone.utc))

    def get_object(self, Bucket, Key):
        if (Bucket, Key) not in self.objects:
            raise ClientError(
                {'Error': {'Code': 'NoSuchKey', 'Message': f'{Key} does not exist'}},
                'GetObject'
            )
        body, _ = self.objects[(Bucket, Key)]
        return {'Body': io.BytesIO(body)}

    def list_objects_v2(self, Bucket):
        contents = [
            {'Key': key, 'LastModified': written_at}
            for (bucket, key), (_, written_at) in self.objects.items()
            if bucket == Bucket
        ]
        return {'Contents': contents} if contents else {}


@pytest.fixture
def fake_s3():
    return FakeS3Client()
