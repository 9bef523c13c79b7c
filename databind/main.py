import logging

import uvicorn

from .app import app
from .core.config import Config

# Configure logging
logging.basicConfig(
    level=Config.log_level(),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(),
    ]
)
logger = logging.getLogger(__name__)


def run() -> None:
    Config.validate()
    uvicorn.run(app, host=Config.HOST, port=int(Config.PORT))


if __name__ == "__main__":
    run()
