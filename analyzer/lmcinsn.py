import re
from enum import Enum

from lmcsrc import *
from lmcerr import *


instructions = [
    'INP', 'OUT', 'ADD', 'SUB', 'STA',
    'LDA', 'BRA', 'BRZ', 'BRP', 'DAT', 'HLT'
]
no_operand   = ['INP', 'OUT', 'HLT']
branch_modes = ['BRA', 'BRZ', 'BRP']

insn_docs = {
    'INP': ("",        "Read a value from the input into the accumulator"),
    'OUT': ("",        "Write the accumulator to the output"),
    'ADD': ("operand", "Add a value to the accumulator"),
    'SUB': ("operand", "Subtract a value from the accumulator"),
    'STA': ("operand", "Store the accumulator to a mailbox"),
    'LDA': ("operand", "Load a value into the accumulator"),
    'BRA': ("label",   "Branch always"),
    'BRZ': ("label",   "Branch if the accumulator is zero"),
    'BRP': ("label",   "Branch if the accumulator is zero or positive"),
    'DAT': ("[value]", "Reserve a mailbox holding a number, a label or an immediate value"),
    'HLT': ("",        "Stop the program"),
}

max_value = 18446744073709551615

decimal_re = re.compile(r"[0-9]+")
radix_re   = re.compile(r"0[xX][0-9a-fA-F]+|0[oO][0-7]+|0[bB][01]+")
label_re   = re.compile(r"[A-Za-z]\w*", re.ASCII)


class OperandType(Enum):
    # Bare decimal literal.
    NUMERIC   = 0
    # Immediate value, prefixed with #.
    IMMEDIATE = 1
    # Indirect label reference, prefixed with @.
    INDIRECT  = 2
    # Direct label reference.
    DIRECT    = 3

def classify_operand(text: str) -> OperandType:
    if decimal_re.fullmatch(text):
        return OperandType.NUMERIC
    elif text.startswith('#'):
        return OperandType.IMMEDIATE
    elif text.startswith('@'):
        return OperandType.INDIRECT
    else:
        return OperandType.DIRECT

def is_numeric(text: str) -> bool:
    return decimal_re.fullmatch(text) != None

def is_label_name(text: str) -> bool:
    return label_re.fullmatch(text) != None


def parse_number(raw: str, loc: Location = None) -> int:
    """
    Parse an unsigned value in decimal, or with a 0x, 0o or 0b prefix.
    Raises LmcError for anything unparsable or outside the 64-bit unsigned range.
    """
    if decimal_re.fullmatch(raw):
        value = int(raw, 10)
    elif radix_re.fullmatch(raw):
        value = int(raw, 0)
    else:
        raise LmcError(f"Not a number: `{raw}`", loc)
    if value > max_value:
        raise LmcError(f"Value {raw} out of range (0-{max_value})", loc)
    return value


def edit_distance(a: str, b: str) -> int:
    # Single-row Levenshtein distance.
    row = list(range(len(b) + 1))
    for i in range(1, len(a) + 1):
        diag, row[0] = row[0], i
        for j in range(1, len(b) + 1):
            cost = 0 if a[i-1] == b[j-1] else 1
            diag, row[j] = row[j], min(row[j] + 1, row[j-1] + 1, diag + cost)
    return row[-1]

def suggest_mnemonics(token: str) -> list[str]:
    """Catalog mnemonics sharing the first letter of `token` or within edit distance 2 of it."""
    return [
        mnemonic for mnemonic in instructions
        if (token and mnemonic[0] == token[0]) or edit_distance(token, mnemonic) <= 2
    ]


class CompletionEntry:
    def __init__(self, label: str, detail: str, doc: str, kind: str = "keyword"):
        self.label  = label
        self.detail = detail
        self.doc    = doc
        self.kind   = kind

    def __repr__(self):
        return f"CompletionEntry({repr(self.label)}, {repr(self.detail)})"

def complete() -> list[CompletionEntry]:
    out = []
    for mnemonic in instructions:
        operand, doc = insn_docs[mnemonic]
        out.append(CompletionEntry(mnemonic, f"{mnemonic} {operand}".strip(), doc))
    return out
