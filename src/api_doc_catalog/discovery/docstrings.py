"""Google-style docstring parsing into OperationDocs."""

import inspect
import re

from api_doc_catalog.models import OperationDocs

SECTION_PATTERN = re.compile(r"^(\w+):\s*$")
PARAM_PATTERN = re.compile(r"^\*{0,2}(\w+)\s*(?:\([^)]*\))?\s*:\s*(.*)$")

ARG_SECTIONS = {"args", "arguments", "parameters", "params"}
RETURN_SECTIONS = {"returns", "return"}
REMARK_SECTIONS = {"note", "notes", "remarks"}


def _join(lines: list[str]) -> str | None:
    text = " ".join(line for line in lines if line)
    return text or None


def parse_docstring(doc: str | None) -> OperationDocs:
    """Split a docstring into summary, per-parameter text, returns and remarks.

    The first paragraph is the summary. Any further free text before the
    first section is kept as remarks, ahead of an explicit ``Note:`` section.
    Unknown sections (``Raises:``, ``Example:`` ...) are ignored.
    """
    if not doc or not doc.strip():
        return OperationDocs()

    paragraphs: list[list[str]] = [[]]
    params: dict[str, str] = {}
    returns: list[str] = []
    remarks: list[str] = []
    section = None
    current = None
    entry_indent = None

    for line in inspect.cleandoc(doc).splitlines():
        stripped = line.strip()
        indent = len(line) - len(line.lstrip())
        header = SECTION_PATTERN.match(line)
        if header and indent == 0:
            section = header.group(1).lower()
            current = None
            entry_indent = None
            continue

        if section is None:
            if stripped:
                paragraphs[-1].append(stripped)
            elif paragraphs[-1]:
                paragraphs.append([])
        elif section in ARG_SECTIONS:
            entry = PARAM_PATTERN.match(stripped)
            if entry and (entry_indent is None or indent <= entry_indent):
                entry_indent = indent
                current = entry.group(1)
                params[current] = entry.group(2).strip()
            elif current and stripped:
                params[current] = f"{params[current]} {stripped}".strip()
        elif section in RETURN_SECTIONS:
            returns.append(stripped)
        elif section in REMARK_SECTIONS:
            remarks.append(stripped)

    body = [_join(p) for p in paragraphs[1:]]
    explicit_remarks = _join(remarks)
    remark_parts = [part for part in body + [explicit_remarks] if part]

    return OperationDocs(
        summary=_join(paragraphs[0]),
        params=params,
        returns=_join(returns),
        remarks=" ".join(remark_parts) or None,
    )
