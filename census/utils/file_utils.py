"""File helpers: extension probing, ignore patterns and result output."""
import json
import os
import re
from pathlib import Path
from typing import Callable, Iterable, List, Pattern, Tuple

FileExists = Callable[[str], bool]


def probe_with_extensions(path: str, extensions: Iterable[str],
                          exists: FileExists = os.path.exists) -> Tuple[bool, str]:
    """Check whether a path exists, appending known extensions when needed.

    A path that already ends with one of ``extensions`` is checked as is.
    Otherwise each extension is appended in order and the first existing
    candidate wins.

    Args:
        path: File path, possibly without extension
        extensions: Ordered extensions to try (e.g. ['.js', '.ts', '.vue'])
        exists: Existence probe

    Returns:
        (exists, path) where path is the probed candidate when one was found,
        otherwise the original path
    """
    extensions = list(extensions)
    if extensions and not path.endswith(tuple(extensions)):
        for ext in extensions:
            candidate = f"{path}{ext}"
            if exists(candidate):
                return True, candidate
        return False, path
    return exists(path), path


def pattern_to_regex(pattern: str) -> Pattern:
    """Turn an ignore pattern into a regular expression.

    Plain names ('node_modules') match anywhere in a path. Dots are escaped
    when the pattern starts or ends with one ('.git', '.d.ts$'), and glob
    wildcards are translated ('**' spans directories, '*' does not).
    """
    regex = pattern
    if regex.startswith('.') or regex.endswith('.'):
        regex = regex.replace('.', r'\.')
    if '*' in regex or '?' in regex:
        regex = (regex.replace('**', '\0')
                      .replace('*', '[^/]*')
                      .replace('\0', '.*')
                      .replace('?', '.'))
    try:
        return re.compile(regex)
    except re.error:
        return re.compile(re.escape(pattern))


def compile_patterns(patterns: Iterable[str]) -> List[Pattern]:
    return [pattern_to_regex(p) for p in patterns if p]


def matches_any(path: str, patterns: Iterable[Pattern]) -> bool:
    return bool(path) and any(p.search(path) for p in patterns)


def write_json(data, output_path: str | Path) -> Path:
    """Write data as indented JSON atomically.

    Args:
        data: JSON-serializable data
        output_path: Destination file

    Returns:
        Resolved path of the written file
    """
    output_path = Path(output_path).resolve()
    output_path.parent.mkdir(parents=True, exist_ok=True)

    temp_path = output_path.with_suffix('.tmp')
    with open(temp_path, 'w', encoding='utf-8') as f:
        json.dump(data, f, indent=2, ensure_ascii=False)
    temp_path.replace(output_path)

    return output_path
