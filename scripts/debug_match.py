"""
Diagnostic script for template matching.

Checks:
1. Both files tokenize.
2. Token counts on each side.
3. Match result with the configured search budget.

Usage:
    python scripts/debug_match.py TEMPLATE.xsl DOCUMENT.html [--xml]
"""
import json
import os
import sys
from pathlib import Path

# Add package root to path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from reverse_xslt import ReverseXSLTError, match, parse, parse_html
from reverse_xslt.log import configure_logging


def count_tokens(tokens):
    return sum(1 + count_tokens(token.children) for token in tokens)


def diagnose(template_path: Path, document_path: Path, document_is_xml: bool = False) -> int:
    print(f"\n--- Matching: {document_path.name} against {template_path.name} ---")

    for path in (template_path, document_path):
        if not path.exists():
            print(f"File not found: {path}")
            return 1

    # 1. Tokenize
    print("Tokenizing...")
    try:
        template = parse(template_path.read_text(encoding="utf-8"))
        source = document_path.read_text(encoding="utf-8")
        instance = parse(source) if document_is_xml else parse_html(source)
    except ReverseXSLTError as e:
        print(f"  Tokenizer Failed [{e.error_code}]: {e.message}")
        return 1

    # 2. Sizes
    print(f"  Template tokens: {count_tokens(template)}")
    print(f"  Instance tokens: {count_tokens(instance)}")

    # 3. Match
    print("\nMatching...")
    try:
        result = match(template, instance)
    except ReverseXSLTError as e:
        print(f"  Match Failed [{e.error_code}]: {e.message}")
        print(f"  Details: {json.dumps(e.details, ensure_ascii=False, default=str)}")
        return 2

    if result is None:
        print("  -> NO MATCH (document was not produced by this template)")
        return 3

    print("  -> MATCH")
    print(json.dumps(result, ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":
    configure_logging()
    args = [arg for arg in sys.argv[1:] if not arg.startswith("--")]
    if len(args) != 2:
        print(__doc__)
        sys.exit(64)
    sys.exit(diagnose(Path(args[0]), Path(args[1]), document_is_xml="--xml" in sys.argv))
