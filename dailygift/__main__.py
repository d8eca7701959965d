"""Run the API (and the Telegram bot when configured) with uvicorn."""
import uvicorn

from dailygift.config import get_settings


def main():
    settings = get_settings()
    # uvicorn handles SIGINT/SIGTERM and runs the lifespan shutdown, which closes the database
    uvicorn.run("dailygift.main:app", host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
