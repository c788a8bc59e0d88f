# scripts/serve.py

import uvicorn
from mlpipeline.config import config
from mlpipeline.serving import create_app_from_config


def main():
    """Serve MODEL_VERSION of the registry on APP_HOST:APP_PORT."""
    uvicorn.run(create_app_from_config(), host=config.APP_HOST, port=config.APP_PORT,
                log_level=config.LOG_LEVEL.lower())


if __name__ == "__main__":
    main()
