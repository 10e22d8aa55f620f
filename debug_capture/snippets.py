"""
Instrumentation snippets handed to agents and users.

The snippet has the listener URL baked in so instrumented code never
hardcodes a port.
"""

from __future__ import annotations

__all__ = ['LABEL_PLACEHOLDER', 'DATA_PLACEHOLDER', 'generate_snippet']

LABEL_PLACEHOLDER = 'LABEL_HERE'
DATA_PLACEHOLDER = '{YOUR_DATA}'


def generate_snippet(url: str) -> str:
    """
    Build a JavaScript fetch() call that posts one record to the listener.

    Args:
        url: Listener base URL, e.g. http://localhost:54321

    Returns:
        Snippet with LABEL_HERE and {YOUR_DATA} placeholders
    """
    return (
        f'fetch("{url}/log", {{\n'
        f'  method: "POST",\n'
        f'  headers: {{"Content-Type": "application/json"}},\n'
        f'  body: JSON.stringify({{label: "{LABEL_PLACEHOLDER}", data: {DATA_PLACEHOLDER}}})\n'
        f'}})'
    )
