#!/usr/bin/env python3

# Static checker and language server for LMC assembly.

import argparse, sys, os

from lmcsrc import *
from lmcerr import *
from lmccheck import *
from lmcfix import *
from lmctmpl import *
from lmclsp import lsp_main


def check_file(path: str, show_hints: bool = True) -> bool:
    """Check one file, printing its diagnostics. Returns whether it was free of errors."""
    with open(path, "r") as fd:
        file = SourceFile(fd.read(), os.path.basename(path), path)
    diagnostics, labels, _ = analyze_srcfile(file)
    for diag in diagnostics:
        print_msg(diag.severity, diag.msg, diag.loc)
        if not show_hints: continue
        for action in suggest_fixes(file.content, labels, [diag], uri=file.name):
            print_msg(Severity.HINT, action.title, diag.loc, show=False)
    return not diagnostics

def main(argv: list[str] = None) -> int:
    parser = argparse.ArgumentParser(description="Checker and language server for LMC assembly")
    parser.add_argument("--lsp",            action="store_true", help="Ignore all other arguments and start in language server mode")
    parser.add_argument("--stdio",          action="store_true", help=argparse.SUPPRESS)
    parser.add_argument("--lsp-debug",      action="store", metavar="FILE", help="Append language server debug output to FILE")
    parser.add_argument("--list-templates", action="store_true", help="List the example programs")
    parser.add_argument("--template", "-t", action="store", metavar="NAME", help="Print an example program")
    parser.add_argument("--no-hints",       action="store_true", help="Do not print suggested fixes")
    parser.add_argument("infile",           action="store", nargs="*")
    args = parser.parse_args(argv)

    if args.lsp:
        if args.lsp_debug:
            with open(args.lsp_debug, "a") as debug:
                return lsp_main(debug)
        return lsp_main()

    if args.list_templates:
        for name in templates:
            print(name)
        return 0

    if args.template:
        try:
            sys.stdout.write(get_template(args.template))
        except KeyError:
            print(f"No such template: {args.template}", file=sys.stderr)
            return 1
        return 0

    if not args.infile:
        parser.print_usage(sys.stderr)
        return 1

    ok = True
    for path in args.infile:
        try:
            ok = check_file(path, not args.no_hints) and ok
        except FileNotFoundError:
            print("File not found: " + path)
            ok = False
    return 0 if ok else 1

if __name__ == "__main__":
    sys.exit(main())
