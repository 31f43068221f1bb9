from contextvars import ContextVar
import contextlib

# Define the ContextVar to store the shop the current computation runs for
shop_context: ContextVar[str] = ContextVar("shop", default="N/A")


@contextlib.contextmanager
def shop_scope(shop: str | None):
    """
    Bind the shop to the logging context for the duration of a service call.
    The previous value is restored on exit, even when the call raises.
    """
    token = shop_context.set(shop or "N/A")
    try:
        yield
    finally:
        shop_context.reset(token)
