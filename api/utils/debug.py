import os
import sys

# Load environment variables early
from dotenv import load_dotenv

load_dotenv()


# ==============================================================================
# DEBUG FUNCTIONS
# ==============================================================================
def print__debug(msg: str) -> None:
    """Print DEBUG messages when debug mode is enabled.

    Args:
        msg: The message to print
    """
    debug_mode = os.environ.get("DEBUG", "0")
    if debug_mode == "1":
        print(f"[DEBUG] {msg}")
        sys.stdout.flush()


def print__startup_debug(msg: str) -> None:
    """Print startup/shutdown messages when debug mode is enabled."""
    debug_mode = os.environ.get("DEBUG", "0")
    if debug_mode == "1":
        print(f"[STARTUP-DEBUG] {msg}")
        sys.stdout.flush()


def print__research_debug(msg: str) -> None:
    """Print RESEARCH-PIPELINE messages when debug mode is enabled.

    Args:
        msg: The message to print
    """
    debug_mode = os.environ.get("print__research_debug", os.environ.get("DEBUG", "0"))
    if debug_mode == "1":
        print(f"[RESEARCH-DEBUG] {msg}")
        sys.stdout.flush()


def print__llm_debug(msg: str) -> None:
    """Print LLM call messages when debug mode is enabled."""
    debug_mode = os.environ.get("print__llm_debug", "0")
    if debug_mode == "1":
        print(f"[print__llm_debug] {msg}")
        sys.stdout.flush()


def print__push_debug(msg: str) -> None:
    """Print PUSH-TO-SCOPESTACK messages when debug mode is enabled.

    Args:
        msg: The message to print
    """
    debug_mode = os.environ.get("print__push_debug", os.environ.get("DEBUG", "0"))
    if debug_mode == "1":
        print(f"[PUSH-DEBUG] {msg}")
        sys.stdout.flush()


def print__scopestack_debug(msg: str) -> None:
    """Print ScopeStack HTTP client messages when debug mode is enabled."""
    debug_mode = os.environ.get("print__scopestack_debug", "0")
    if debug_mode == "1":
        print(f"[print__scopestack_debug] {msg}")
        sys.stdout.flush()


def print__oauth_debug(msg: str) -> None:
    """Print OAUTH-FLOW messages when debug mode is enabled.

    Args:
        msg: The message to print
    """
    debug_mode = os.environ.get("DEBUG", "0")
    if debug_mode == "1":
        print(f"[OAUTH-FLOW] {msg}")
        sys.stdout.flush()


def print__analytics_debug(msg: str) -> None:
    """Print request-log/analytics messages when debug mode is enabled."""
    debug_mode = os.environ.get("print__analytics_debug", "0")
    if debug_mode == "1":
        print(f"[print__analytics_debug] {msg}")
        sys.stdout.flush()


def print__rate_limit_debug(msg: str) -> None:
    """Print rate limiting messages when debug mode is enabled."""
    debug_mode = os.environ.get("print__rate_limit_debug", "0")
    if debug_mode == "1":
        print(f"[print__rate_limit_debug] {msg}")
        sys.stdout.flush()
