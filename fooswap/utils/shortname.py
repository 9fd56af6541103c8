import logging


class ShortNameFilter(logging.Filter):
    """Adds `record.shortname`: the last two dotted parts of the logger name.

    "fooswap.sources.sui_pipeline.client" → "sui_pipeline-client"
    """
    def filter(self, record):
        path = record.name.split(".")
        record.shortname = "-".join(path[-2:])
        return True


def setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=level.upper(),
        format="[%(asctime)s] [%(levelname)s] %(shortname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    # handler-level so records from every module logger get the field
    for handler in logging.getLogger().handlers:
        if not any(isinstance(f, ShortNameFilter) for f in handler.filters):
            handler.addFilter(ShortNameFilter())
