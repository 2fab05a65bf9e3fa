"""
XLIFF 1.2 and 2.0 files.

Each file holds one language pair. A string's key is the path to its unit,
URL-encoded and joined with "/":

    [srcLang, file id, group ids..., unit id]

XLIFF 1.2 files have no file id; their `original` attribute is used instead,
and target states are mapped onto the 2.0 state names.
"""

import copy
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterator, List, Optional
from xml.etree import ElementTree as ET

from ..errors import ConverterError
from ..models.bundle import Bundle, ExtractedFrom, LocalizationState, LocalizationUnit, StringUnit
from .base import ExportParser, ImportMerger, encode_key, get_target_value, new_bundle

logger = logging.getLogger(__name__)

V1_STATES = {
    "new": "initial",
    "needs-translation": "initial",
    "needs-adaptation": "initial",
    "needs-l10n": "initial",
    "translated": "translated",
    "needs-review-translation": "reviewed",
    "needs-review-adaptation": "reviewed",
    "needs-review-l10n": "reviewed",
    "signed-off": "reviewed",
    "final": "final",
}

V2_STATES = {
    "initial": LocalizationState.NEW,
    "translated": LocalizationState.TRANSLATED,
    "reviewed": LocalizationState.REVIEWED,
    "final": LocalizationState.REVIEWED,
}


@dataclass
class XliffUnit:
    """One translatable unit found while walking an XLIFF document."""

    key: str
    source_language: str
    source_value: str
    target_value: Optional[str] = None
    # 2.0 state name
    state: Optional[str] = None
    sub_state: Optional[str] = None
    notes: List[str] = field(default_factory=list)
    # <segment> (2.0) or <trans-unit> (1.2) holding source and target
    container: Optional[ET.Element] = field(default=None, repr=False)


def _local(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _namespace(tag: str) -> str:
    return tag[: tag.index("}") + 1] if tag.startswith("{") else ""


def _children(element: ET.Element, name: str) -> List[ET.Element]:
    return [child for child in element if _local(child.tag) == name]


def _child(element: ET.Element, name: str) -> Optional[ET.Element]:
    found = _children(element, name)
    return found[0] if found else None


def element_text(element: ET.Element) -> str:
    """Inner content of an element, keeping inline markup as XML text."""
    parts = [element.text or ""]
    for child in element:
        inline = copy.copy(child)
        inline.tail = None
        parts.append(ET.tostring(inline, encoding="unicode"))
        parts.append(child.tail or "")
    return "".join(parts)


def parse_xliff(content: str) -> ET.Element:
    try:
        root = ET.fromstring(content)
    except ET.ParseError as e:
        raise ConverterError(f"Invalid XLIFF document: {e}") from e
    if _local(root.tag) != "xliff":
        raise ConverterError(f"Not an XLIFF document, root element is <{_local(root.tag)}>")
    namespace = _namespace(root.tag)
    if namespace:
        ET.register_namespace("", namespace[1:-1])
    return root


def is_xliff2(root: ET.Element) -> bool:
    return root.get("version", "").startswith("2")


def iter_units(root: ET.Element) -> Iterator[XliffUnit]:
    """Walk every unit of an XLIFF 1.2 or 2.0 document."""
    if is_xliff2(root):
        source_language = root.get("srcLang", "")
        for file in _children(root, "file"):
            yield from _iter_v2(file, [source_language, file.get("id", "")], source_language)
    else:
        for file in _children(root, "file"):
            source_language = file.get("source-language", "")
            path = [source_language, file.get("original", "")]
            for body in _children(file, "body"):
                yield from _iter_v1(body, path, source_language)


def _iter_v2(parent: ET.Element, path: List[str], source_language: str) -> Iterator[XliffUnit]:
    for element in parent:
        name = _local(element.tag)
        if name == "group":
            yield from _iter_v2(element, [*path, element.get("id", "")], source_language)
        elif name == "unit":
            unit_id = element.get("id")
            if not unit_id:
                logger.warning("No id in unit under %s", "/".join(path))
                continue
            segment = _child(element, "segment")
            if segment is None:
                logger.warning("No segment for element: %s", unit_id)
                continue
            source = _child(segment, "source")
            if source is None:
                logger.warning("No source for element: %s", unit_id)
                continue
            target = _child(segment, "target")
            notes = [
                element_text(note)
                for notes in _children(element, "notes")
                for note in _children(notes, "note")
            ]
            yield XliffUnit(
                key=encode_key([*path, unit_id]),
                source_language=source_language,
                source_value=element_text(source),
                target_value=element_text(target) if target is not None else None,
                state=segment.get("state"),
                sub_state=segment.get("subState"),
                notes=notes,
                container=segment,
            )


def _iter_v1(parent: ET.Element, path: List[str], source_language: str) -> Iterator[XliffUnit]:
    for element in parent:
        name = _local(element.tag)
        if name == "group":
            group_id = element.get("id")
            if not group_id:
                logger.warning("No id in group under %s", "/".join(path))
                continue
            yield from _iter_v1(element, [*path, group_id], source_language)
        elif name == "trans-unit":
            unit_id = element.get("id")
            if not unit_id:
                logger.warning("No id in unit under %s", "/".join(path))
                continue
            source = _child(element, "source")
            if source is None:
                logger.warning("No source in %s", unit_id)
                continue
            target = _child(element, "target")
            target_state = target.get("state") if target is not None else None
            notes = [element_text(note) for note in _children(element, "note") if element_text(note)]
            yield XliffUnit(
                key=encode_key([*path, unit_id]),
                source_language=source_language,
                source_value=element_text(source),
                target_value=element_text(target) if target is not None else None,
                state=V1_STATES.get(target_state) if target_state else None,
                notes=notes,
                container=element,
            )


def parse_xliff_state(state: Optional[str], default: LocalizationState) -> LocalizationState:
    if state is None:
        return default
    try:
        return V2_STATES[state]
    except KeyError:
        raise ConverterError(f"Unknown state for xliff: {state}") from None


def _state_metadata(unit: XliffUnit, extracted_from: ExtractedFrom) -> Dict[str, str]:
    metadata = {"extractedFrom": extracted_from.value}
    if unit.state is not None:
        metadata["state"] = unit.state
    if unit.sub_state is not None:
        metadata["subState"] = unit.sub_state
    return metadata


class XliffParser(ExportParser):
    def export_source(self, file_id: str, content: str, language: str) -> Bundle:
        bundle = new_bundle(file_id, language, {"format": "xliff"})
        for unit in iter_units(parse_xliff(content)):
            if unit.source_language != language:
                raise ConverterError(
                    f"Source language mismatch: {unit.source_language} vs {language}"
                )
            if unit.key in bundle.strings:
                raise ConverterError(f"Duplicate key found in the xliff file {file_id}. Key: {unit.key}")
            bundle.strings[unit.key] = StringUnit(
                comment="\n".join(unit.notes) or None,
                localizations={
                    language: LocalizationUnit(
                        state=LocalizationState.NEW,
                        value=unit.source_value,
                        metadata=_state_metadata(unit, ExtractedFrom.SOURCE),
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
        found: Dict[str, XliffUnit] = {}
        if content and content.strip():
            found = {unit.key: unit for unit in iter_units(parse_xliff(content))}

        for key, string_unit in bundle.strings.items():
            unit = found.get(key)
            if unit is None:
                string_unit.localizations[language] = LocalizationUnit(
                    state=LocalizationState.NEW,
                    metadata={"extractedFrom": ExtractedFrom.UNDEFINED.value},
                )
                continue

            has_value = unit.target_value is not None
            string_unit.localizations[language] = LocalizationUnit(
                state=parse_xliff_state(
                    unit.state,
                    LocalizationState.TRANSLATED if has_value else LocalizationState.NEW,
                ),
                value=unit.target_value,
                metadata=_state_metadata(
                    unit, ExtractedFrom.EXISTING if has_value else ExtractedFrom.UNDEFINED
                ),
            )
        return bundle


class XliffMerger(ImportMerger):
    """
    Uses the source XLIFF file as a template: the target language is set and
    a <target> is written for every translated unit, the rest of the document
    is kept as is.
    """

    def merge(
        self,
        bundle: Bundle,
        source_file_path: Path,
        target_language: str,
        target_file_path: Path,
    ) -> None:
        root = parse_xliff(Path(source_file_path).read_text(encoding="utf-8"))
        v2 = is_xliff2(root)
        if v2:
            root.set("trgLang", target_language)
        else:
            for file in _children(root, "file"):
                file.set("target-language", target_language)

        for unit in iter_units(root):
            if unit.key not in bundle.strings:
                logger.warning("[%s] %s is not in the bundle, left untouched", bundle.file_id, unit.key)
                continue
            value = get_target_value(bundle, target_language, unit.key)
            if value is None:
                continue
            target = self._target_element(unit.container)
            for child in list(target):
                target.remove(child)
            target.text = value
            if not v2:
                target.set("state", "translated")

        target_file_path = Path(target_file_path)
        target_file_path.parent.mkdir(parents=True, exist_ok=True)
        ET.ElementTree(root).write(target_file_path, encoding="utf-8", xml_declaration=True)

    def _target_element(self, container: ET.Element) -> ET.Element:
        target = _child(container, "target")
        if target is not None:
            return target
        source = _child(container, "source")
        target = ET.Element(f"{_namespace(source.tag)}target")
        # <target> goes right after <source>
        container.insert(list(container).index(source) + 1, target)
        return target
