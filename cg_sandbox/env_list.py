"""Parse delimited ``KEY=VALUE`` / glob lists into environment pairs.

The raw value is a single CSV record: fields are separated by ``,`` and may
be double-quoted to embed commas, spaces or quotes. A field containing ``=``
is an explicit pair split at the first ``=``. Any other field is a glob
pattern matched against the names of the current environment.
"""

from __future__ import annotations

import csv
import io
import re
from typing import Iterable, Sequence

from cg_common.config.env import Environment
from cg_common.errors import EnvListParseError

DELIMITER = ","
QUOTE = '"'
ESCAPE = "\\"


def split_env_list(raw: str) -> list[str]:
    """Split ``raw`` into its non-empty fields."""
    reader = csv.reader(
        io.StringIO(raw),
        delimiter=DELIMITER,
        quotechar=QUOTE,
        doublequote=True,
        strict=True,
    )
    try:
        record = next(reader, [])
    except csv.Error as exc:
        raise EnvListParseError(
            f"Invalid environment list: {exc}",
            context={"value": raw},
            cause=exc,
        ) from exc
    return [field for field in record if field]


def format_env_list(pairs: Iterable[tuple[str, str]]) -> str:
    """Serialize explicit pairs back into the list grammar."""
    buffer = io.StringIO()
    writer = csv.writer(
        buffer,
        delimiter=DELIMITER,
        quotechar=QUOTE,
        quoting=csv.QUOTE_MINIMAL,
        lineterminator="",
    )
    writer.writerow([f"{key}={value}" for key, value in pairs])
    return buffer.getvalue()


def _translate_class(pattern: str, start: int) -> tuple[str, int] | None:
    """Translate a ``[...]`` class starting at ``start``; None if unterminated."""
    idx = start + 1
    negate = False
    if idx < len(pattern) and pattern[idx] in "!^":
        negate = True
        idx += 1
    parts: list[str] = []
    first = True
    while idx < len(pattern):
        char = pattern[idx]
        if char == "]" and not first:
            body = "".join(parts)
            return ("[^" if negate else "[") + body + "]", idx + 1
        if char == ESCAPE and idx + 1 < len(pattern):
            idx += 1
            char = pattern[idx]
        if (
            idx + 2 < len(pattern)
            and pattern[idx + 1] == "-"
            and pattern[idx + 2] != "]"
        ):
            parts.append(f"{re.escape(char)}-{re.escape(pattern[idx + 2])}")
            idx += 3
        else:
            parts.append(re.escape(char))
            idx += 1
        first = False
    return None


def glob_to_regex(pattern: str) -> str:
    """Translate a glob pattern into an anchored regular expression.

    Supports ``*``, ``?``, ``[...]`` classes with ``!``/``^`` negation and
    ranges, and ``\\`` to escape the next character.
    """
    out: list[str] = []
    idx = 0
    while idx < len(pattern):
        char = pattern[idx]
        if char == ESCAPE and idx + 1 < len(pattern):
            out.append(re.escape(pattern[idx + 1]))
            idx += 2
            continue
        if char == "*":
            out.append(".*")
        elif char == "?":
            out.append(".")
        elif char == "[":
            translated = _translate_class(pattern, idx)
            if translated is not None:
                regex, idx = translated
                out.append(regex)
                continue
            out.append(re.escape(char))
        else:
            out.append(re.escape(char))
        idx += 1
    return "(?s:" + "".join(out) + r")\Z"


def compile_glob(pattern: str) -> re.Pattern[str]:
    try:
        return re.compile(glob_to_regex(pattern))
    except re.error as exc:
        raise EnvListParseError(
            f"Invalid glob pattern '{pattern}': {exc}",
            context={"pattern": pattern},
            cause=exc,
        ) from exc


def match_glob(pattern: str, name: str) -> bool:
    return compile_glob(pattern).match(name) is not None


def resolve_tokens(tokens: Sequence[str], env: Environment) -> list[tuple[str, str]]:
    pairs: list[tuple[str, str]] = []
    for token in tokens:
        key, sep, value = token.partition("=")
        if sep:
            pairs.append((key, value))
            continue
        regex = compile_glob(token)
        for env_key, env_value in env.items():
            if regex.match(env_key):
                pairs.append((env_key, env_value))
    return pairs


def resolve_env_list(raw: str | None, env: Environment) -> list[tuple[str, str]]:
    """Resolve ``raw`` into ordered ``(key, value)`` pairs.

    Explicit pairs are taken verbatim; glob fields expand to every matching
    variable of ``env`` in its enumeration order.
    """
    if not raw:
        return []
    return resolve_tokens(split_env_list(raw), env)
