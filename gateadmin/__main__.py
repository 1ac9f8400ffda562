import logging

import uvicorn

from gateadmin.config import settings


def main() -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run("gateadmin.main:app", host=settings.HOST, port=settings.PORT)


if __name__ == "__main__":
    main()
