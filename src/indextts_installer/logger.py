import structlog

# TRACE sits below DEBUG; structlog filters on the numeric value only
LOG_LEVELS = {"TRACE": 5, "DEBUG": 10, "INFO": 20}

_active_level: int | None = None


def configure_logging(log_level: str = "INFO") -> None:
    """Point structlog at stdout as JSON lines, filtered at ``log_level``.

    Reconfiguring with the level already in effect is a no-op.
    """
    global _active_level
    level = LOG_LEVELS.get(log_level.upper(), LOG_LEVELS["INFO"])
    if level == _active_level:
        return

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            # Progress text may be Chinese
            structlog.processors.JSONRenderer(ensure_ascii=False),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )
    _active_level = level


def get_logger(name: str) -> structlog.BoundLogger:
    """Logger tagged with the module name, at the level from the application config."""
    from indextts_installer.config import get_config

    config = get_config()
    if config.paths.logs_dir:
        config.paths.logs_dir.mkdir(parents=True, exist_ok=True)
    configure_logging(config.advanced.log_level)

    return structlog.get_logger(name).bind(logger=name)
