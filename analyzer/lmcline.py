import re

from lmcsrc import *
from lmcinsn import instructions

# A label starts in the first column and is followed by whitespace.
label_prefix_re = re.compile(r"([A-Za-z]\w*)\s+", re.ASCII)
# A three letter mnemonic not followed by a word character, then an optional
# whitespace-separated operand token; trailing text is ignored.
insn_re = re.compile(r"\s*([A-Z]{3})(?![A-Za-z0-9_])(?:\s+([^;\s]+))?", re.ASCII)


class SourceLine:
    def __init__(self, line: int, label: str|None, mnemonic: str, operand: str|None,
            label_loc: Location = None, mnemonic_loc: Location = None, operand_loc: Location = None):
        self.line         = line
        self.label        = label
        self.mnemonic     = mnemonic
        self.operand      = operand
        self.label_loc    = label_loc
        self.mnemonic_loc = mnemonic_loc
        self.operand_loc  = operand_loc

    @property
    def col(self) -> int:
        return self.mnemonic_loc.col

    @property
    def operand_col(self) -> int:
        return self.operand_loc.col if self.operand_loc else -1

    def __repr__(self):
        return f"SourceLine({self.line}, {repr(self.label)}, {repr(self.mnemonic)}, {repr(self.operand)})"


def strip_comment(line: str) -> str:
    return line.split(';', 1)[0]

def parse_line(file: SourceFile, line_no: int) -> SourceLine|None:
    code = strip_comment(file.lines[line_no])
    if not code.strip():
        return None

    # A leading word is a label unless it is itself an instruction.
    label = label_loc = None
    insn  = None
    match = label_prefix_re.match(code)
    if match and match.group(1) not in instructions:
        insn = insn_re.match(code, match.end())
        if insn:
            label = match.group(1)
            label_loc = Location(file, line_no, 0, len(label))
    if not insn:
        insn = insn_re.match(code)
    if not insn:
        return None

    mnemonic, operand = insn.groups()
    mnemonic_loc = Location(file, line_no, insn.start(1), len(mnemonic))
    operand_loc  = Location(file, line_no, insn.start(2), len(operand)) if operand else None
    return SourceLine(line_no, label, mnemonic, operand, label_loc, mnemonic_loc, operand_loc)

def parse_lines(file: SourceFile) -> list[SourceLine]:
    """Parse every line of `file`; blank, comment-only and malformed lines are left out."""
    out = []
    for line_no in range(len(file.lines)):
        line = parse_line(file, line_no)
        if line: out.append(line)
    return out
