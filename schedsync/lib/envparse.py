"""
Safe .env file parser.

Reads KEY=value lines without shell evaluation, so a checked-in .env can
hold the token and scheduler settings without becoming an injection vector.
"""

import re
from pathlib import Path

# Values are data, never shell
FORBIDDEN_PATTERNS = [
    r'`',           # backticks
    r'\$\(',        # command substitution
    r'\$\{',        # variable expansion
]

KEY_PATTERN = re.compile(r'^[A-Z][A-Z0-9_]*$')


def parse_env(text: str) -> dict[str, str]:
    """
    Parse env file content, return dict.

    Accepts an optional leading "export ", blank lines and # comments.

    Raises:
        ValueError: if syntax invalid or forbidden pattern found
    """
    result = {}

    for lineno, line in enumerate(text.splitlines(), 1):
        line = line.strip()

        if not line or line.startswith('#'):
            continue

        if line.startswith('export '):
            line = line[len('export '):].lstrip()

        if '=' not in line:
            raise ValueError(f"Line {lineno}: Invalid syntax (no '=')")

        key, _, value = line.partition('=')
        key = key.strip()
        value = value.strip()

        if not KEY_PATTERN.match(key):
            raise ValueError(f"Line {lineno}: Invalid key '{key}'")

        if len(value) >= 2 and value[0] == value[-1] and value[0] in ('"', "'"):
            value = value[1:-1]

        for pattern in FORBIDDEN_PATTERNS:
            if re.search(pattern, value):
                raise ValueError(f"Line {lineno}: Forbidden pattern in value for {key}")

        result[key] = value

    return result


def load_env(filepath: Path, required: bool = True) -> dict[str, str]:
    """
    Load and parse an env file.

    Raises:
        FileNotFoundError: if the file is required and doesn't exist
        ValueError: on invalid content
    """
    if not filepath.exists():
        if required:
            raise FileNotFoundError(f"Env file not found: {filepath}")
        return {}
    return parse_env(filepath.read_text())
