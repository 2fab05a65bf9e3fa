"""
Apple .strings files.

    /* Title of the home screen */
    "home.title" = "Home";

    // line comments work too
    "greeting" = "Hello, %@!";
"""

import re
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from ..errors import ConverterError
from ..models.bundle import Bundle, ExtractedFrom, LocalizationState, LocalizationUnit, StringUnit
from .base import ExportParser, ImportMerger, get_target_value, new_bundle, write_text_file

_QUOTED = r'"([^"\\]*(?:\\.[^"\\]*)*)"'
_PAIR_RE = re.compile(_QUOTED + r"\s*=\s*" + _QUOTED + r"\s*;")
# Value continues on the following lines
_PAIR_START_RE = re.compile(_QUOTED + r'\s*=\s*"(.*)$')


@dataclass
class StringsItem:
    key: str
    value: str
    comment: Optional[str] = None

    def to_text(self) -> str:
        pair = f'"{escape_strings(self.key)}" = "{escape_strings(self.value)}";'
        if self.comment:
            return f"/* {self.comment} */\n{pair}"
        return pair


def unescape_strings(text: str) -> str:
    """Resolve backslash escapes of a quoted .strings literal."""
    result = []
    i = 0
    while i < len(text):
        char = text[i]
        if char == "\\" and i + 1 < len(text):
            nxt = text[i + 1]
            result.append({"n": "\n", "t": "\t", "r": "\r"}.get(nxt, nxt))
            i += 2
            continue
        result.append(char)
        i += 1
    return "".join(result)


def escape_strings(text: str) -> str:
    return (
        text.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\t", "\\t")
    )


def parse_strings(content: str) -> List[StringsItem]:
    """
    Parse .strings content into items.

    Comments directly preceding a pair become its comment; several comments
    are joined with newlines.

    Raises:
        ConverterError: on a line that is neither a comment nor a pair, or
            on a comment or value that is never closed
    """
    items = []
    comments: List[str] = []
    lines = content.split("\n")
    i = 0

    while i < len(lines):
        line = lines[i].strip()
        line_number = i + 1

        if line.startswith("/*"):
            text = line[2:]
            while "*/" not in text and i < len(lines) - 1:
                i += 1
                text += "\n" + lines[i]
            if "*/" not in text:
                raise ConverterError(f"Unterminated comment starting at line {line_number}")
            comment, _, trailing = text.partition("*/")
            comments.append(comment.strip())
            trailing = trailing.strip()
            if trailing:
                # a pair on the same line as the comment
                lines[i] = trailing
                continue

        elif line.startswith("//"):
            comments.append(line[2:].strip())

        elif line.startswith('"'):
            match = _PAIR_RE.match(line)
            if match:
                items.append(StringsItem(
                    key=unescape_strings(match.group(1)),
                    value=unescape_strings(match.group(2)),
                    comment="\n".join(comments) or None,
                ))
                comments = []
            else:
                match = _PAIR_START_RE.match(line)
                if match:
                    value = match.group(2)
                    while not value.rstrip().endswith('";') and i < len(lines) - 1:
                        i += 1
                        value += "\n" + lines[i]
                    value = value.rstrip()
                    if not value.endswith('";'):
                        raise ConverterError(f"Unterminated value starting at line {line_number}")
                    items.append(StringsItem(
                        key=unescape_strings(match.group(1)),
                        value=unescape_strings(value[:-2]),
                        comment="\n".join(comments) or None,
                    ))
                    comments = []
                else:
                    raise ConverterError(f"Invalid .strings pair at line {line_number}: {line}")

        elif line:
            raise ConverterError(f"Invalid .strings content at line {line_number}: {line}")

        i += 1

    return items


class AppleStringsParser(ExportParser):
    def export_source(self, file_id: str, content: str, language: str) -> Bundle:
        bundle = new_bundle(file_id, language)
        for item in parse_strings(content):
            if not item.key:
                continue
            if item.key in bundle.strings:
                raise ConverterError(f"Duplicate key found in the strings file {file_id}. Key: {item.key}")
            bundle.strings[item.key] = StringUnit(
                comment=item.comment,
                localizations={
                    language: LocalizationUnit(
                        state=LocalizationState.NEW,
                        value=item.value or "",
                        metadata={"extractedFrom": ExtractedFrom.SOURCE.value},
                    )
                },
            )
        return bundle

    def export_target(
        self,
        file_id: str,
        content: Optional[str],
        language: str,
        bundle: Bundle,
    ) -> Bundle:
        existing = {}
        if content and content.strip():
            existing = {item.key: item for item in parse_strings(content)}

        for key, unit in bundle.strings.items():
            item = existing.get(key)
            if item is not None:
                unit.localizations[language] = LocalizationUnit(
                    state=LocalizationState.TRANSLATED,
                    value=item.value or "",
                    metadata={"extractedFrom": ExtractedFrom.EXISTING.value},
                )
            else:
                unit.localizations[language] = LocalizationUnit(
                    state=LocalizationState.NEW,
                    value=unit.localizations[bundle.source_language].value,
                    metadata={"extractedFrom": ExtractedFrom.SOURCE.value},
                )
        return bundle


class AppleStringsMerger(ImportMerger):
    def merge(
        self,
        bundle: Bundle,
        source_file_path: Path,
        target_language: str,
        target_file_path: Path,
    ) -> None:
        items = []
        for key, unit in bundle.strings.items():
            value = get_target_value(bundle, target_language, key)
            if value is None:
                continue
            items.append(StringsItem(key=key, value=value, comment=unit.comment))

        output = "\n\n".join(item.to_text() for item in items)
        write_text_file(target_file_path, output + "\n")
