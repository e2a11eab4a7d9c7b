"""Initialize Langfuse tracing for LLM sentiment analysis."""

import logging
import threading

from langfuse import Langfuse

from rto_dashboard.config import settings

logger = logging.getLogger(__name__)

langfuse_client: Langfuse | None = None
_tracing_lock = threading.Lock()


def tracing_configured() -> bool:
    return bool(settings.langfuse_secret_key and settings.langfuse_public_key)


def init_tracing() -> None:
    global langfuse_client

    if not tracing_configured():
        logger.info("Langfuse tracing disabled, keys not set")
        return

    with _tracing_lock:
        langfuse_client = Langfuse(
            secret_key=settings.langfuse_secret_key,
            public_key=settings.langfuse_public_key,
            host=settings.langfuse_host,
        )
    logger.info("Langfuse tracing enabled (host: %s)", settings.langfuse_host)


def shutdown_tracing() -> None:
    global langfuse_client
    with _tracing_lock:
        if langfuse_client:
            langfuse_client.flush()
            langfuse_client.shutdown()
            langfuse_client = None


def get_langfuse_handler():
    if not tracing_configured():
        return None

    try:
        from langfuse.callback import CallbackHandler
    except ImportError:
        try:
            from langfuse.langchain import CallbackHandler
        except ImportError:
            logger.warning("Langfuse callback handler not available")
            return None

    try:
        return CallbackHandler(
            secret_key=settings.langfuse_secret_key,
            public_key=settings.langfuse_public_key,
            host=settings.langfuse_host,
        )
    except TypeError:
        return CallbackHandler()
