"""Run the service: ``python -m labsync``."""
import uvicorn

from .logging_config import setup_logging
from .main import create_app
from .settings import Settings


def main():
    settings = Settings()
    setup_logging(debug=settings.debug)
    app = create_app(settings)
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    main()
