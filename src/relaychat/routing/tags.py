"""Inline backend override tags such as ``@openai`` and ``@webllm``."""

from .models import Backend


def _remove_first(text: str, tag: str) -> str | None:
    """Remove the first case-insensitive occurrence of ``tag``, or return None."""
    idx = text.lower().find(tag.lower())
    if idx == -1:
        return None
    before = text[:idx].strip()
    after = text[idx + len(tag) :].strip()
    return f"{before} {after}".strip()


def extract_backend_tag(text: str, remote_tag: str, local_tag: str) -> tuple[Backend | None, str]:
    """Find an explicit backend tag and strip every tag from the text.

    Matching is a case-insensitive substring search. When both tags are
    present the remote tag wins. Removing a tag joins the text on either
    side with a single space.

    Args:
        text: Raw user input
        remote_tag: Tag that forces the remote model
        local_tag: Tag that forces the local model

    Returns:
        Tuple of (requested backend or None, text with tags removed)
    """
    lowered = text.lower()
    if remote_tag.lower() in lowered:
        backend = Backend.REMOTE
    elif local_tag.lower() in lowered:
        backend = Backend.LOCAL
    else:
        return None, text

    cleaned = text
    for tag in (remote_tag, local_tag):
        while (stripped := _remove_first(cleaned, tag)) is not None:
            cleaned = stripped

    return backend, cleaned


def count_words(text: str) -> int:
    return len(text.split())
