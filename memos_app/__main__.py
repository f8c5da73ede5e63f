import uvicorn

import memos_core.config as config


def main() -> None:
    config.logger.info("Memos MCP starting...")
    uvicorn.run("memos_app.main:asgi_app", host=config.HOST, port=config.PORT)


if __name__ == "__main__":
    main()
