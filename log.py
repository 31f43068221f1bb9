import logging
import sys
from context import shop_context

class ContextualFilter(logging.Filter):
    """A logging filter that injects the current shop from ContextVar."""
    def filter(self, record: logging.LogRecord) -> bool:
        record.shop = shop_context.get()
        return True

def setup_logging(log_level: str = "INFO", log_filename: str = "ab_stats_engine.log"):
    log_filter = ContextualFilter()

    # The format must include the custom 'shop' attribute
    formatter = logging.Formatter(
        '%(asctime)s - %(levelname)s - [%(shop)s] - %(name)s - %(message)s'
    )

    stream_handler = logging.StreamHandler(sys.stdout)

    file_handler = logging.FileHandler(log_filename, mode='a')

    handlers=[
        # Handler to send logs to the console (standard output)
        stream_handler,
        # Handler to send logs to a file
        file_handler
    ]

    for handler in handlers:
        handler.addFilter(log_filter)
        handler.setFormatter(formatter)

    # Apply the handlers to the root logger
    logging.basicConfig(level=logging.getLevelName(log_level.upper()), handlers=handlers)
