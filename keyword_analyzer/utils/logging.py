"""Non-blocking queue-based logging setup."""

import logging
import logging.handlers
import queue


def setup_logging(level: str = "INFO") -> logging.handlers.QueueListener:
    """Route log records through a queue so request handlers never block on I/O.

    Returns the QueueListener so it can be stopped on shutdown.
    """
    log_queue: queue.Queue[logging.LogRecord] = queue.Queue(-1)  # Unlimited size
    queue_handler = logging.handlers.QueueHandler(log_queue)

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
    )

    # QueueListener handles the actual I/O in a separate thread
    queue_listener = logging.handlers.QueueListener(
        log_queue, stream_handler, respect_handler_level=True
    )
    queue_listener.start()

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        handlers=[queue_handler],
        force=True,
    )

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)

    return queue_listener
