from setuptools import setup, find_packages
"""
Setup configuration for the ML pipeline package.

This setup script configures the package for installation and defines:
- Package metadata
- Dependencies
- Package structure
- Installation requirements

The package is designed to be installed in development mode using:
    pip install -e .
"""
setup(
    name="ml-pipeline-stages",
    version="0.2",
    packages=find_packages(include=["mlpipeline", "mlpipeline.*"]),
    python_requires=">=3.9",
    install_requires=[
        'pandas<3',
        'scikit-learn>=1.2',
        'boto3',
        'botocore',
        'joblib',
        'numpy',
        'pyarrow',
        'fastapi',
        'pydantic>=2',
        'uvicorn',
        'python-dotenv'
    ],
    extras_require={
        'test': [
            'pytest',
            'httpx'
        ]
    },
)
