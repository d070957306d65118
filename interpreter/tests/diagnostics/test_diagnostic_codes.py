#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2026 gwz

from __future__ import annotations

import pytest

from conftest import has_error_code
from parts_diagnostics import DIAGNOSTIC_CODE_FAMILIES


LEX_TRIGGERS = {
    "LEX-0010": '"unterminated',
    "LEX-0040": "@",
}

PAR_TRIGGERS = {
    "PAR-0010": "1 + ;",
    "PAR-0020": "1 = 2;",
    "PAR-0030": "f(" + ", ".join(["1"] * 256) + ");",
    "PAR-0031": "fun f(" + ", ".join(f"p{i}" for i in range(256)) + ") {}",
    "PAR-0040": "class {}",
    "PAR-0041": "class A < {}",
    "PAR-0042": "class A }",
    "PAR-0043": "class A {",
    "PAR-0050": "fun () {}",
    "PAR-0051": "fun f {}",
    "PAR-0052": "fun f(1) {}",
    "PAR-0053": "fun f(a b) {}",
    "PAR-0054": "fun f() return;",
    "PAR-0060": "let 1 = 2;",
    "PAR-0061": "let a = 1",
    "PAR-0070": "if true) {}",
    "PAR-0071": "if (true {}",
    "PAR-0080": "while true) {}",
    "PAR-0081": "while (true {}",
    "PAR-0090": "for ;;) {}",
    "PAR-0091": "for (let i = 0; i < 3 i = i + 1) {}",
    "PAR-0092": "for (;; 1 {}",
    "PAR-0100": "fun f() { return 1 }",
    "PAR-0110": "{ let a = 1;",
    "PAR-0120": "1 + 2",
    "PAR-0130": "f(1, 2;",
    "PAR-0131": "a.1;",
    "PAR-0140": "(1 + 2;",
    "PAR-0141": "super;",
    "PAR-0142": "super.1;",
    "PAR-0150": "(" * 3000 + "1" + ")" * 3000 + ";",
}

RES_TRIGGERS = {
    "RES-0010": "{ let a = 1; let a = 2; }",
    "RES-0020": "{ let a = a; }",
    "RES-0030": "return 1;",
    "RES-0031": "class A { init() { return 1; } }",
    "RES-0040": "class A < A {}",
    "RES-0050": "print(this);",
    "RES-0051": "super.f();",
    "RES-0052": "class A { f() { super.f(); } }",
    "RES-0060": "print(" + "1 + " * 30000 + "1);",
}

RUN_TRIGGERS = {
    "RUN-0010": '-"a";',
    "RUN-0011": '1 < "a";',
    "RUN-0012": '1 + "a";',
    "RUN-0020": "print(missing);",
    "RUN-0030": '"a"();',
    "RUN-0031": "fun f(a) {} f();",
    "RUN-0040": '"a".x;',
    "RUN-0041": '"a".x = 1;',
    "RUN-0042": "class A {} A().x;",
    "RUN-0050": "let B = 1; class A < B {}",
    "RUN-0060": "fun f() { return f(); } f();",
}

TRIGGERS = {**LEX_TRIGGERS, **PAR_TRIGGERS, **RES_TRIGGERS, **RUN_TRIGGERS}


def _all_codes() -> list[str]:
    codes: list[str] = []
    for family in DIAGNOSTIC_CODE_FAMILIES.values():
        codes.extend(family)
    return codes


def test_codes_are_unique_and_prefixed_by_family():
    codes = _all_codes()
    assert len(codes) == len(set(codes))
    for family, members in DIAGNOSTIC_CODE_FAMILIES.items():
        assert all(code.startswith(f"{family}-") for code in members)


@pytest.mark.parametrize("code", _all_codes())
def test_diagnostic_code_triggers(code, run_source):
    assert code in TRIGGERS, f"no trigger for {code}"
    result, _ = run_source(TRIGGERS[code])
    assert result.has_errors()
    assert has_error_code(result.diagnostics, code)


def test_triggers_only_name_registered_codes():
    assert set(TRIGGERS) == set(_all_codes())
