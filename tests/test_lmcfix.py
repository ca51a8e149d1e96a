import pytest

from lmccheck import LabelTable, analyze
from lmcerr import Diagnostic, DiagKind
from lmcfix import CodeAction, TextEdit, suggest_fixes
from lmcsrc import Location, SourceFile
from lmctmpl import templates


def _fixes(text: str, **kwargs):
    return suggest_fixes(text, None, analyze(text), uri="file:///prog.lmc", **kwargs)


def test_numeric_needs_hash_gets_prefixed(apply_edits):
    text = "LDA 5"
    (action,) = _fixes(text)
    assert action.kind == "quickfix"
    assert action.diagnostics[0].kind == DiagKind.NUMERIC_NEEDS_HASH
    assert action.edit["file:///prog.lmc"] == [TextEdit((0, 4), (0, 5), "#5")]
    assert apply_edits(text, action.edits) == "LDA #5"


@pytest.mark.parametrize("text", ["LDA #99999999999999999999", "ADD 99999999999999999999", "DAT #x", "SUB #"])
def test_bad_values_are_replaced_with_zero(text, apply_edits):
    (action,) = _fixes(text)
    assert action.edits[0].new_text == "#0"
    assert apply_edits(text, action.edits) == text.split()[0] + " #0"


def test_missing_dat_operand_gets_zero():
    file = SourceFile("X DAT")
    diag = Diagnostic(DiagKind.MISSING_OPERAND, "Instruction DAT requires an operand", Location(file, 0, 2, 3))
    (action,) = suggest_fixes(file.content, None, [diag])
    assert action.edits == [TextEdit((0, 5), (0, 5), " 0")]
    assert action.edits[0].is_insert


def test_missing_operand_on_other_instructions_has_no_fix():
    assert _fixes("LDA") == []


def test_branch_to_undefined_label_creates_code_label_before_data(apply_edits):
    text = "    BRA MISSING\n    HLT\nONE DAT 1\nTWO DAT 2\n"
    (action,) = _fixes(text)
    assert action.edits == [TextEdit((2, 0), (2, 0), "MISSING\tHLT\n\n")]
    assert apply_edits(text, action.edits) == "    BRA MISSING\n    HLT\nMISSING\tHLT\n\nONE DAT 1\nTWO DAT 2\n"
    assert analyze(apply_edits(text, action.edits)) == []


def test_branch_without_data_section_appends_code_label(apply_edits):
    text = "    BRZ MISSING"
    (action,) = _fixes(text)
    assert action.edits[0].start == (0, 15)
    assert "MISSING\tHLT" in action.edits[0].new_text
    assert apply_edits(text, action.edits) == "    BRZ MISSING\nMISSING\tHLT\n"


def test_load_of_undefined_label_appends_data_label(apply_edits):
    text = "    LDA MISSING\n    HLT\nONE DAT 1\n"
    (action,) = _fixes(text)
    assert action.edits == [TextEdit((3, 0), (3, 0), "MISSING\tDAT 0\n")]
    assert analyze(apply_edits(text, action.edits)) == []


def test_data_label_goes_on_its_own_line(apply_edits):
    text = "    STA @TOTAL"
    (action,) = _fixes(text)
    assert action.edits[0].new_text == "\nTOTAL\tDAT 0"
    assert apply_edits(text, action.edits) == "    STA @TOTAL\nTOTAL\tDAT 0"


def test_no_label_is_created_for_bad_names_or_known_labels():
    assert _fixes("LDA a-b") == []
    diags = analyze("LDA LATER")
    assert suggest_fixes("LDA LATER", LabelTable.of(["LATER"]), diags) == []


def test_invalid_instruction_offers_each_candidate(apply_edits):
    text = "  LDX #1"
    actions = _fixes(text)
    assert [a.title for a in actions] == ["Change to ADD", "Change to LDA"]
    assert [apply_edits(text, a.edits) for a in actions] == ["  ADD #1", "  LDA #1"]


def test_invalid_instruction_candidates_are_computed_when_missing():
    file = SourceFile("HTL")
    diag = Diagnostic(DiagKind.INVALID_INSTRUCTION, "Invalid instruction: HTL", Location(file, 0, 0, 3))
    assert [a.title for a in suggest_fixes(file.content, None, [diag])] == ["Change to STA", "Change to HLT"]


def test_diagnostics_without_fixes():
    assert _fixes("A HLT\nA HLT") == []
    assert _fixes("DAT foo") == []


def test_foreign_diagnostics_are_ignored():
    file = SourceFile("LDA 5")
    diag = Diagnostic(DiagKind.NUMERIC_NEEDS_HASH, "x", Location(file, 0, 4, 1), source="other")
    assert suggest_fixes(file.content, None, [diag]) == []


def test_requested_range_filters_diagnostics():
    text = "LDA 5\nADD 6\nSUB 7"
    actions = _fixes(text, range=((1, 0), (1, 5)))
    assert len(actions) == 1
    assert actions[0].edits[0].new_text == "#6"


def test_all_fixes_are_returned_together():
    text = "LDA 5\nBRA END\nXYZ #1"
    titles = [a.title for a in _fixes(text)]
    assert titles[0] == "Prefix with '#': #5"
    assert titles[1] == "Create code label 'END'"
    assert titles[2:] == ["Change to BRZ"]


@pytest.mark.parametrize("text", ["", "   \n\t\n"])
def test_empty_document_offers_templates(text):
    actions = suggest_fixes(text, None, [], uri="file:///new.lmc")
    assert len(actions) == len(templates)
    for action, (name, body) in zip(actions, templates.items()):
        assert name in action.title
        assert action.diagnostics == []
        assert action.edit == {"file:///new.lmc": [TextEdit((0, 0), (0, 0), body)]}


def test_code_action_holds_edits_per_document():
    action = CodeAction("t", "file:///a.lmc", [TextEdit((0, 0), (0, 0), "x")])
    assert list(action.edit) == ["file:///a.lmc"]
    assert action.edits[0].new_text == "x"


def test_only_catalog_mnemonics_are_offered():
    file = SourceFile("LDX #1")
    diag = Diagnostic(DiagKind.INVALID_INSTRUCTION, "Invalid instruction: LDX", Location(file, 0, 0, 3),
        candidates=["FOO", "LDA"])
    assert [a.title for a in suggest_fixes(file.content, None, [diag])] == ["Change to LDA"]
    diag.candidates = ["FOO"]
    assert [a.title for a in suggest_fixes(file.content, None, [diag])] == ["Change to ADD", "Change to LDA"]
