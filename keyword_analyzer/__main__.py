import uvicorn

from keyword_analyzer.app import create_app
from keyword_analyzer.config import Settings


def main() -> None:
    settings = Settings.from_env()
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
