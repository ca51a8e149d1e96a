from lmc import main
from lmctmpl import templates


def test_clean_file_passes(tmp_path, capsys):
    path = tmp_path / "ok.lmc"
    path.write_text(templates["Countdown"])
    assert main([str(path)]) == 0
    assert capsys.readouterr().out == ""


def test_errors_are_printed_with_hints(tmp_path, capsys):
    path = tmp_path / "bad.lmc"
    path.write_text("    LDA 5\n    HLT\n")
    assert main([str(path)]) == 1
    out = capsys.readouterr().out
    assert "Error bad.lmc:1:9: Numeric value 5 must be prefixed with '#'" in out
    assert "   1 |     LDA 5" in out
    assert "Hint bad.lmc:1:9: Prefix with '#': #5" in out


def test_hints_can_be_disabled(tmp_path, capsys):
    path = tmp_path / "bad.lmc"
    path.write_text("XYZ #1\n")
    assert main(["--no-hints", str(path)]) == 1
    out = capsys.readouterr().out
    assert "Invalid instruction: XYZ" in out
    assert "Hint" not in out


def test_every_file_is_checked(tmp_path, capsys):
    bad = tmp_path / "bad.lmc"
    bad.write_text("BRA nowhere\n")
    good = tmp_path / "good.lmc"
    good.write_text("HLT\n")
    assert main([str(bad), str(good), str(tmp_path / "gone.lmc")]) == 1
    out = capsys.readouterr().out
    assert "Undefined label: nowhere" in out
    assert "Create code label 'nowhere'" in out
    assert "File not found: " + str(tmp_path / "gone.lmc") in out


def test_list_templates(capsys):
    assert main(["--list-templates"]) == 0
    assert capsys.readouterr().out.splitlines() == list(templates)


def test_print_template(capsys):
    assert main(["-t", "Multiply"]) == 0
    assert capsys.readouterr().out == templates["Multiply"]


def test_unknown_template(capsys):
    assert main(["--template", "Nope"]) == 1
    assert "No such template: Nope" in capsys.readouterr().err


def test_no_input_prints_usage(capsys):
    assert main([]) == 1
    assert "usage:" in capsys.readouterr().err
