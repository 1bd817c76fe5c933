"""Main entry point for the call-path sampler service."""

import os
from pathlib import Path

import uvicorn
from dotenv import load_dotenv

from callpath.api import create_fastapi_app, get_app
from callpath.logging_config import setup_logging
from sim import Sim


def main():
    """Run the service."""
    project_root = Path(__file__).resolve().parent.parent
    load_dotenv(project_root / ".env")
    setup_logging()

    # Get configuration from environment
    api_host = os.getenv("API_HOST", "localhost")
    api_port = int(os.getenv("API_PORT", "8000"))

    application = get_app()

    # Set SIM instance for control router
    from callpath.api.routes import control
    control.set_sim_instance(Sim(application))

    app = create_fastapi_app(application)

    # Logging is configured above; keep uvicorn from replacing it
    uvicorn.run(
        app,
        host=api_host,
        port=api_port,
        log_level="info",
        log_config=None,
    )


if __name__ == "__main__":
    main()
