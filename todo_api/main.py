import logging
from typing import List, Optional

from todo_api.api.http_server import BASE_PATH, build_server
from todo_api.config import load_config
from todo_api.logging_setup import setup_logging
from todo_api.services.action_log import ActionLogger
from todo_api.services.storage import TaskStore


logger = logging.getLogger(__name__)


def main(argv: Optional[List[str]] = None) -> None:
    config = load_config(argv)
    setup_logging(config.log_level)

    store = TaskStore(ActionLogger(config.action_log_path))
    if config.seed:
        store.seed_defaults()

    server = build_server(config, store)
    host, port = server.server_address[:2]

    logger.info("Server started: http://%s:%s", host, port)
    logger.info("Endpoints:")
    logger.info("  GET    %s", BASE_PATH)
    logger.info("  GET    %s/<id>", BASE_PATH)
    logger.info('  POST   %s          JSON: {"description":"...","completed":false}', BASE_PATH)
    logger.info("  PUT    %s/<id>", BASE_PATH)
    logger.info("  DELETE %s/<id>", BASE_PATH)
    logger.info("  GET    /admin/logs?limit=N")

    try:
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("Shutting down")
    finally:
        server.server_close()


if __name__ == "__main__":
    main()
