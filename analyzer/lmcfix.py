from lmcsrc import *
from lmcerr import *
from lmcinsn import *
from lmcline import *
from lmccheck import *
from lmctmpl import *

Position = tuple[int,int]


class TextEdit:
    """Replace the text between two zero-based (line, character) positions."""

    def __init__(self, start: Position, end: Position, new_text: str):
        self.start    = start
        self.end      = end
        self.new_text = new_text

    @property
    def is_insert(self) -> bool:
        return self.start == self.end

    def __repr__(self):
        return f"TextEdit({self.start}, {self.end}, {repr(self.new_text)})"

    def __eq__(self, other: object):
        return other is self or (type(other) == TextEdit and
            (other.start, other.end, other.new_text) == (self.start, self.end, self.new_text))

    @staticmethod
    def replace(loc: Location, new_text: str) -> Self:
        return TextEdit((loc.line, loc.col), (loc.line, loc.end_col), new_text)

    @staticmethod
    def insert(pos: Position, new_text: str) -> Self:
        return TextEdit(pos, pos, new_text)

class CodeAction:
    kind = "quickfix"

    def __init__(self, title: str, uri: str, edits: list[TextEdit], diagnostics: list[Diagnostic] = None):
        self.title       = title
        self.diagnostics = diagnostics or []
        self.edit        = {uri: edits}

    def __repr__(self):
        return f"CodeAction({repr(self.title)}, {repr(self.edit)})"

    @property
    def edits(self) -> list[TextEdit]:
        return [edit for edits in self.edit.values() for edit in edits]


def append_line(file: SourceFile, text: str) -> TextEdit:
    """Insert `text` as a new line at the end of `file`."""
    end = file.end_location()
    if file.lines[-1]:
        return TextEdit.insert((end.line, end.col), "\n" + text)
    return TextEdit.insert((end.line, end.col), text + "\n")

def fix_undefined_label(diag: Diagnostic, file: SourceFile, lines: list[SourceLine], labels: LabelTable) -> tuple[str,TextEdit]|None:
    label = diag.token
    if label in labels or not is_label_name(label):
        return None
    mnemonic = next((line.mnemonic for line in lines if line.line == diag.loc.line), None)
    if mnemonic in branch_modes:
        # Code labels go above the data section.
        dat = next((line for line in lines if line.mnemonic == 'DAT'), None)
        if dat:
            edit = TextEdit.insert((dat.line, 0), f"{label}\tHLT\n\n")
        else:
            edit = append_line(file, f"{label}\tHLT\n")
        return f"Create code label '{label}'", edit
    return f"Create data label '{label}'", append_line(file, f"{label}\tDAT 0")

def fix_diagnostic(diag: Diagnostic, file: SourceFile, lines: list[SourceLine], labels: LabelTable, uri: str) -> list[CodeAction]:
    def action(title: str, edit: TextEdit) -> CodeAction:
        return CodeAction(title, uri, [edit], [diag])

    match diag.kind:
        case DiagKind.NUMERIC_NEEDS_HASH:
            return [action(f"Prefix with '#': #{diag.token}", TextEdit.replace(diag.loc, '#' + diag.token))]
        case DiagKind.MISSING_OPERAND if diag.token == 'DAT':
            return [action("Add operand 0", TextEdit.insert((diag.loc.line, diag.loc.end_col), " 0"))]
        case DiagKind.IMMEDIATE_OUT_OF_RANGE | DiagKind.NUMERIC_OUT_OF_RANGE | DiagKind.INCOMPLETE_IMMEDIATE:
            return [action("Replace with #0", TextEdit.replace(diag.loc, "#0"))]
        case DiagKind.UNDEFINED_LABEL | DiagKind.UNDEFINED_LABEL_REFERENCE:
            fix = fix_undefined_label(diag, file, lines, labels)
            return [action(*fix)] if fix else []
        case DiagKind.INVALID_INSTRUCTION:
            candidates = [m for m in diag.candidates if m in instructions] or suggest_mnemonics(diag.loc.text())
            return [action(f"Change to {mnemonic}", TextEdit.replace(diag.loc, mnemonic)) for mnemonic in candidates]
        case _:
            return []

def template_actions(file: SourceFile, uri: str) -> list[CodeAction]:
    if not file.is_blank():
        return []
    return [
        CodeAction(f"Insert template: {name}", uri, [TextEdit.insert((0, 0), text)])
        for name, text in templates.items()
    ]

def suggest_fixes(text: str, labels: LabelTable = None, diagnostics: Iterable[Diagnostic] = (),
        range: tuple[Position,Position] = None, uri: str = None) -> list[CodeAction]:
    """
    Propose quick fixes for `diagnostics` found in `text`.
    With `range`, only diagnostics touching that range are considered.
    Blank documents additionally get one action per template.
    """
    file  = SourceFile(text, uri)
    uri   = file.name
    lines = parse_lines(file)
    if labels == None:
        labels = build_label_table(lines, MsgLog())

    actions: list[CodeAction] = []
    for diag in diagnostics:
        if diag.source != "LMC":
            continue
        if range and not diag.loc.overlaps(*range):
            continue
        actions.extend(fix_diagnostic(diag, file, lines, labels, uri))
    actions.extend(template_actions(file, uri))
    return actions
