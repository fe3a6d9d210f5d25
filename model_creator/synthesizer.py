"""
Template Synthesizer: clones a reference block into a new ``#elif`` arm.

The new block is a line-by-line copy of the reference with the guard renamed
and a fixed set of macro definitions rewritten. Each field rule decides what
happens to its line:

    value supplied, line present   -> replace only the value in place
    value supplied, line absent    -> append a new definition (if creatable)
    no value,       line present   -> drop the line (unless mandatory)
"""

import re
from dataclasses import dataclass
from typing import Callable, List, Optional, Pattern

from model_creator.config import DEFAULT_CONFIG, ModelCreatorConfig
from model_creator.exceptions import MissingRequiredFieldError
from model_creator.models import ConditionalBlock, FieldUpdates
from model_creator.run_log import RunLog

_GUARD_IF_RE = re.compile(r"^(\s*)#\s*if\b")


@dataclass(frozen=True)
class FieldRule:
    key: str
    attribute: str                         # FieldUpdates attribute holding the value
    line_pattern: Pattern
    value_pattern: Pattern
    render_value: Callable[[str], str]
    template_attr: Optional[str] = None    # ModelCreatorConfig attribute; None = not creatable
    mandatory: bool = False


# Processing order matters: created lines are appended in this order
FIELD_RULES = (
    FieldRule(
        key="SOFTWARE_VERSION",
        attribute="software_version",
        line_pattern=re.compile(r"#define\s+SOFTWARE_VERSION\b"),
        value_pattern=re.compile(r"0x[0-9a-fA-F]{8}"),
        render_value=lambda v: v,
        template_attr="software_version_template",
    ),
    FieldRule(
        key="CUSTOM_CODE_NAME",
        attribute="custom_code_name",
        line_pattern=re.compile(r"#define\s+CUSTOM_CODE_NAME\b"),
        value_pattern=re.compile(r'"[^"]*"'),
        render_value=lambda v: f'"{v}"',
        template_attr="code_name_template",
    ),
    FieldRule(
        key="EEPROMDATA",
        attribute="eeprom_macro",
        line_pattern=re.compile(r"#define\s+EEPROMDATA_"),
        value_pattern=re.compile(r"EEPROMDATA_\S+"),
        render_value=lambda v: v,
        mandatory=True,
    ),
)


def rename_guard(header: str, old_name: str, new_name: str) -> str:
    """Rename the guard and turn a leading ``#if`` into ``#elif``."""
    renamed = header.replace(old_name, new_name, 1)
    return _GUARD_IF_RE.sub(r"\1#elif", renamed, count=1)


def _find_line(lines: List[str], pattern: Pattern) -> int:
    for idx, line in enumerate(lines):
        if pattern.search(line):
            return idx
    return -1


def synthesize(reference: ConditionalBlock, new_name: str, updates: FieldUpdates,
               config: ModelCreatorConfig = DEFAULT_CONFIG,
               run_log: Optional[RunLog] = None) -> str:
    """
    Return the text of a new block derived from *reference*.

    Pure text transformation; lines are joined with ``\\n``.

    Raises:
        MissingRequiredFieldError: if ``updates.eeprom_macro`` is absent.
    """
    if not updates.eeprom_macro:
        raise MissingRequiredFieldError("eeprom_macro")

    lines = reference.raw_text.split("\n")
    lines[0] = rename_guard(lines[0], reference.name, new_name)

    for rule in FIELD_RULES:
        value = getattr(updates, rule.attribute)
        idx = _find_line(lines, rule.line_pattern)

        if idx > -1:
            if value:
                lines[idx] = rule.value_pattern.sub(
                    lambda _m: rule.render_value(value), lines[idx], count=1
                )
                _note(run_log, f"{rule.key}: value rewritten", key=rule.key, action="rewrite")
            elif not rule.mandatory:
                del lines[idx]
                _note(run_log, f"{rule.key}: omitted, line removed", key=rule.key, action="remove")
        elif value and rule.template_attr:
            template = getattr(config, rule.template_attr)
            lines.append(template.format(value=value))
            _note(run_log, f"{rule.key}: definition appended", key=rule.key, action="create")
        elif value and rule.mandatory and run_log is not None:
            run_log.warning("synthesizer",
                            f"Reference block {reference.name} has no {rule.key} line; nothing rewritten",
                            key=rule.key)

    return "\n".join(lines)


def _note(run_log: Optional[RunLog], message: str, **details) -> None:
    if run_log is not None:
        run_log.debug("synthesizer", message, **details)
