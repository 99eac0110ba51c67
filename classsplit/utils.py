__all__ = ('count_lines',)


def count_lines(text: str) -> int:
    """Count lines the way ``str.splitlines`` does.

    A trailing newline terminates the last line rather than opening a new one.
    """
    return len(text.splitlines())
