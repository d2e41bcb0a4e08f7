"""Helpers for build command strings.

Build commands are configured as plain strings such as
``NODE_OPTIONS=--max_old_space_size=4096 npm run build``. They are never
handed to a shell: leading ``NAME=value`` tokens become environment
variables and the rest is the argument vector.
"""

from __future__ import annotations

import re
import shlex

ENV_ASSIGNMENT = re.compile(r"^([A-Za-z_][A-Za-z0-9_]*)=(.*)$", re.DOTALL)
HEAP_FLAG = re.compile(r"--max[-_]old[-_]space[-_]size=\d+")

DEFAULT_BUILD_COMMAND = "npm run build"


def split_command(command: str) -> tuple[dict[str, str], list[str]]:
    """Split a command string into environment assignments and argv.

    Args:
        command: Command string, optionally prefixed with NAME=value pairs.

    Returns:
        Tuple of (environment overrides, argument vector).

    Raises:
        ValueError: If the string has unbalanced quotes or no executable.
    """
    tokens = shlex.split(command)
    env: dict[str, str] = {}

    while tokens:
        match = ENV_ASSIGNMENT.match(tokens[0])
        if not match:
            break
        env[match.group(1)] = match.group(2)
        tokens.pop(0)

    if not tokens:
        raise ValueError(f"No executable in command: {command!r}")

    return env, tokens


def heap_directive(memory_limit_mb: int) -> str:
    """Return the Node.js flag raising the old-space heap limit."""
    return f"--max_old_space_size={memory_limit_mb}"


def with_memory_limit(command: str, memory_limit_mb: int = 4096) -> str:
    """Rewrite a build command so Node.js runs with a larger heap.

    An existing NODE_OPTIONS prefix is kept and its heap flag replaced or
    extended; otherwise a NODE_OPTIONS assignment is prepended.

    Args:
        command: Build command currently in effect.
        memory_limit_mb: Heap size in megabytes.

    Returns:
        The rewritten command string.
    """
    directive = heap_directive(memory_limit_mb)

    try:
        env, argv = split_command(command)
    except ValueError:
        return f"NODE_OPTIONS={directive} {command}"

    node_options = env.get("NODE_OPTIONS", "")
    if HEAP_FLAG.search(node_options):
        node_options = HEAP_FLAG.sub(directive, node_options)
    else:
        node_options = f"{node_options} {directive}".strip()
    env["NODE_OPTIONS"] = node_options

    # NODE_OPTIONS goes first so the directive is visible at a glance
    ordered = {"NODE_OPTIONS": env.pop("NODE_OPTIONS"), **env}
    prefix = " ".join(f"{name}={shlex.quote(value)}" for name, value in ordered.items())
    return f"{prefix} {shlex.join(argv)}"
