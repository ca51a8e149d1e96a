from typing import Iterable

from lmcsrc import *
from lmcerr import *
from lmcinsn import *
from lmcline import *


class LabelTable:
    """Labels defined in a document, mapped to their first definition."""

    def __init__(self):
        self.labels: dict[str,Location] = {}

    def __contains__(self, name: str):
        return name in self.labels

    def __iter__(self):
        return iter(self.labels)

    def __len__(self):
        return len(self.labels)

    def get(self, name: str) -> Location|None:
        return self.labels.get(name)

    def define(self, name: str, loc: Location = None):
        self.labels[name] = loc

    @staticmethod
    def of(names: Iterable[str]) -> Self:
        table = LabelTable()
        for name in names:
            table.define(name)
        return table


def build_label_table(lines: list[SourceLine], log: MsgLog) -> LabelTable:
    labels = LabelTable()
    for line in lines:
        if not line.label: continue
        if line.label in labels:
            log.raise_err(DiagKind.DUPLICATE_LABEL, f"Duplicate label: {line.label}", line.label_loc)
        else:
            labels.define(line.label, line.label_loc)
    return labels


range_msg = f"value must be between 0 and {max_value}"

def check_number(raw: str, kind: DiagKind, loc: Location, log: MsgLog):
    try:
        parse_number(raw, loc)
    except LmcError as e:
        prefix = "Immediate" if kind == DiagKind.IMMEDIATE_OUT_OF_RANGE else "Numeric"
        log.raise_err(kind, f"{prefix} {range_msg}", e.loc)

def check_dat(line: SourceLine, labels: LabelTable, log: MsgLog):
    operand, loc = line.operand, line.operand_loc
    match classify_operand(operand):
        case OperandType.IMMEDIATE:
            check_number(operand[1:], DiagKind.IMMEDIATE_OUT_OF_RANGE, loc, log)
        case OperandType.NUMERIC:
            check_number(operand, DiagKind.NUMERIC_OUT_OF_RANGE, loc, log)
        case _:
            if operand not in labels:
                log.raise_err(DiagKind.DAT_OPERAND_INVALID,
                    "DAT operand must be a number, a label, or an immediate value prefixed with '#'", loc)

def check_operand(line: SourceLine, labels: LabelTable, log: MsgLog):
    operand, loc = line.operand, line.operand_loc
    match classify_operand(operand):
        case OperandType.NUMERIC:
            try:
                parse_number(operand, loc)
            except LmcError:
                log.raise_err(DiagKind.NUMERIC_OUT_OF_RANGE, f"Numeric {range_msg}", loc)
            else:
                log.raise_err(DiagKind.NUMERIC_NEEDS_HASH,
                    f"Numeric value {operand} must be prefixed with '#' for immediate addressing", loc)
        case OperandType.IMMEDIATE:
            if len(operand) <= 1:
                log.raise_err(DiagKind.INCOMPLETE_IMMEDIATE,
                    f"'{line.mnemonic}' operand '{operand}' is incomplete. A value must follow '#'", loc)
            else:
                check_number(operand[1:], DiagKind.IMMEDIATE_OUT_OF_RANGE, loc, log)
        case OperandType.INDIRECT:
            label = operand[1:]
            if label not in labels:
                log.raise_err(DiagKind.UNDEFINED_LABEL_REFERENCE, f"Undefined label reference: {label}", loc, label)
        case OperandType.DIRECT:
            if operand not in labels:
                log.raise_err(DiagKind.UNDEFINED_LABEL, f"Undefined label: {operand}", loc)

def check_line(line: SourceLine, labels: LabelTable, log: MsgLog):
    mnemonic = line.mnemonic
    if not mnemonic: return

    if mnemonic not in instructions:
        log.raise_err(DiagKind.INVALID_INSTRUCTION, f"Invalid instruction: {mnemonic}",
            line.mnemonic_loc, candidates=suggest_mnemonics(mnemonic))

    if mnemonic == 'DAT':
        if line.operand:
            check_dat(line, labels, log)
    elif mnemonic in no_operand:
        # Operands of INP, OUT and HLT are ignored.
        pass
    elif line.operand:
        check_operand(line, labels, log)
    else:
        log.raise_err(DiagKind.MISSING_OPERAND, f"Instruction {mnemonic} requires an operand", line.mnemonic_loc)


def analyze_srcfile(file: SourceFile, log: MsgLog = None) -> tuple[list[Diagnostic], LabelTable, list[SourceLine]]:
    log    = log if log != None else MsgLog()
    lines  = parse_lines(file)
    # Pass 1: Collect all labels so forward references resolve.
    labels = build_label_table(lines, log)
    # Pass 2: Validate instructions and operands.
    for line in lines:
        check_line(line, labels, log)
    return log.diagnostics, labels, lines

def analyze(text: str, name: str = None) -> list[Diagnostic]:
    return analyze_srcfile(SourceFile(text, name))[0]
