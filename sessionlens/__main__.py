"""Run the SessionLens backend with uvicorn."""
import uvicorn

from sessionlens import config


def main() -> None:
    uvicorn.run("sessionlens.main:app", host=config.HOST, port=config.PORT, log_level="info")


if __name__ == "__main__":
    main()
