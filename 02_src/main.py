"""Main entry point for MailSeekerBot."""

import os
from pathlib import Path

import uvicorn
from dotenv import load_dotenv

from mailseeker.api import create_fastapi_app
from mailseeker.logging_config import setup_logging


def main():
    """Run the bot service."""
    project_root = Path(__file__).resolve().parent.parent
    load_dotenv(project_root / ".env")
    setup_logging()

    api_host = os.getenv("API_HOST", "localhost")
    api_port = int(os.getenv("API_PORT", "3978"))

    app = create_fastapi_app()

    uvicorn.run(
        app,
        host=api_host,
        port=api_port,
        log_level="info",
    )


if __name__ == "__main__":
    main()
