from callcoach.config import Config
from callcoach.logging_utils import setup_logging


def main():
    setup_logging(Config.LOG_LEVEL)

    missing = Config.validate()
    for item in missing:
        if not item.startswith("DEEPGRAM"):
            print(f"WARNING: missing {item}")

    import uvicorn
    uvicorn.run(
        "callcoach.server:app",
        host=Config.SERVER_HOST,
        port=Config.SERVER_PORT,
        log_level=Config.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
