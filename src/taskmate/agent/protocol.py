"""Parse ``[ToolName] {json}`` invocations out of model output."""

import re
from dataclasses import dataclass

_TOOL_NAME = re.compile(r"^[A-Za-z0-9_]+$")


@dataclass(frozen=True)
class ParsedToolCall:
    """A tool invocation found in the text; ``raw_arguments`` is unparsed JSON."""

    name: str
    raw_arguments: str | None = None


@dataclass(frozen=True)
class ParsedResponse:
    cleaned_text: str
    calls: list[ParsedToolCall]


def _scan_object(text: str, start: int) -> int | None:
    """Index just past the brace-balanced object starting at ``start``.

    Braces inside string literals are counted too; a known limitation.
    Returns None if the braces never balance.
    """
    depth = 0
    for i in range(start, len(text)):
        char = text[i]
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return i + 1
    return None


def extract_tool_calls(response_text: str) -> ParsedResponse:
    """Split model output into visible text and tool calls.

    Bracketed tokens that are not identifiers (``[see docs]``) stay in the
    text. Never raises: unbalanced JSON yields a call without arguments.
    """
    calls: list[ParsedToolCall] = []
    cleaned: list[str] = []
    cursor = 0
    length = len(response_text)

    while cursor < length:
        start = response_text.find("[", cursor)
        if start == -1:
            cleaned.append(response_text[cursor:])
            break

        end = response_text.find("]", start + 1)
        if end == -1:
            cleaned.append(response_text[cursor:])
            break

        name = response_text[start + 1 : end].strip()
        if not _TOOL_NAME.match(name):
            cleaned.append(response_text[cursor : end + 1])
            cursor = end + 1
            continue

        cleaned.append(response_text[cursor:start])

        arg_start = end + 1
        while arg_start < length and response_text[arg_start].isspace():
            arg_start += 1

        raw_arguments = None
        if arg_start < length and response_text[arg_start] == "{":
            arg_end = _scan_object(response_text, arg_start)
            if arg_end is not None:
                raw_arguments = response_text[arg_start:arg_end]
                cursor = arg_end
            else:
                # Unbalanced: drop the token, keep scanning after it
                cursor = arg_start
        else:
            cursor = arg_start

        calls.append(ParsedToolCall(name=name, raw_arguments=raw_arguments))

    # Removing a token can leave trailing blanks on its line
    lines = "".join(cleaned).split("\n")
    cleaned_text = "\n".join(line.rstrip() for line in lines).strip()
    return ParsedResponse(cleaned_text=cleaned_text, calls=calls)
