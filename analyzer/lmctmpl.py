# Example programs offered as snippets for empty documents.

templates: dict[str,str] = {
    "Add two numbers": """\
; Read two numbers and output their sum.
        INP
        STA FIRST
        INP
        ADD FIRST
        OUT
        HLT
FIRST   DAT 0
""",

    "Countdown": """\
; Count down from the input to zero.
        INP
LOOP    OUT
        SUB ONE
        BRP LOOP
        HLT
ONE     DAT 1
""",

    "Maximum of two numbers": """\
; Output the larger of two inputs.
        INP
        STA FIRST
        INP
        STA SECOND
        SUB FIRST
        BRP TAKEB
        LDA FIRST
        BRA DONE
TAKEB   LDA SECOND
DONE    OUT
        HLT
FIRST   DAT 0
SECOND  DAT 0
""",

    "Multiply": """\
; Multiply two inputs by repeated addition.
        INP
        STA FACTOR
        INP
        STA COUNT
LOOP    LDA COUNT
        BRZ DONE
        SUB #1
        STA COUNT
        LDA RESULT
        ADD FACTOR
        STA RESULT
        BRA LOOP
DONE    LDA RESULT
        OUT
        HLT
FACTOR  DAT 0
COUNT   DAT 0
RESULT  DAT 0
""",
}

def get_template(name: str) -> str:
    if name not in templates:
        raise KeyError(f"No such template: {name}")
    return templates[name]
