"""
Optional dependency checks for the agent helpers.
"""


def ensure_anthropic_installed():
    """
    Check the anthropic package is installed.
    Raises ImportError with installation instructions if not found.
    """
    try:
        import anthropic  # noqa: F401
        return True
    except ImportError:
        raise ImportError(
            "create_anthropic requires the anthropic package. "
            "Please install with: pip install tetto-sdk[anthropic]"
        )
