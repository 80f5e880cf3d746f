import structlog
import logging

def configure_logging(log_level: str = "INFO", json_logs: bool = False):
    """
    Configures structlog for the signer's stdout.
    The signer usually runs in a terminal or under systemd where an operator
    tails the output, so events render as plain `event key=value` lines.
    Set json_logs when the output is shipped to a log collector instead.
    log_level must be a standard level name; SignerSettings validates it.
    """
    renderer = (
        structlog.processors.JSONRenderer()
        if json_logs
        else structlog.dev.ConsoleRenderer(colors=False)
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer
        ],
        logger_factory=structlog.PrintLoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(logging.getLevelName(log_level.upper())),
        cache_logger_on_first_use=True,
    )

def get_logger(name: str):
    return structlog.get_logger(name)
