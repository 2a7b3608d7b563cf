# inyourface/__main__.py
import uvicorn

from inyourface.main import create_app


def main() -> None:
    uvicorn.run(create_app(), host="127.0.0.1", port=8765)


if __name__ == "__main__":
    main()
