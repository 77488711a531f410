"""Run the API server with uvicorn."""

import uvicorn

from context_match.config import get_settings


def main() -> None:
    """Start the server on the configured host and port."""
    settings = get_settings()
    uvicorn.run(
        "context_match.api.app:app",
        host=settings.api_host,
        port=settings.api_port,
        log_config=None,
    )


if __name__ == "__main__":
    main()
