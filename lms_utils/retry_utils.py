from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential
from .logger_utils import logger


def on_retry_callback(retry_state):
    """Callback function to log retry attempts."""
    logger.warning(
        f"Retrying function {retry_state.fn.__name__}, "
        f"attempt {retry_state.attempt_number} after {retry_state.seconds_since_start:.2f}s..."
    )


def ai_retry(exception_types=(Exception,), attempts: int = 2):
    """Retry decorator for outbound AI calls. Re-raises the last error."""
    return retry(
        retry=retry_if_exception_type(exception_types),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=2),
        stop=stop_after_attempt(attempts),
        before_sleep=on_retry_callback,
        reraise=True,
    )
