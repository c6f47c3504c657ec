"""Tests for ScriptAssembler fragment generation."""

import itertools
import json
import re
from pathlib import Path
from unittest.mock import patch

import pytest

from casperdriver.script import CLOSING, PREAMBLE, ScriptAssembler

# Double-quoted JSON/JS string literals
_LITERAL_RE = re.compile(r'"(?:[^"\\]|\\.)*"')

INJECTION = "'); phantom.exit(); (\"\n"


def _literals(fragment: str) -> list:
    return [json.loads(m.group(0)) for m in _LITERAL_RE.finditer(fragment)]


def _code_outside_literals(fragment: str) -> str:
    return _LITERAL_RE.sub('""', fragment)


def _single(call) -> str:
    """The fragment a single builder call appends to a fresh assembler."""
    assembler = ScriptAssembler()
    call(assembler)
    assert len(assembler.fragments) == 2
    return assembler.fragments[1]


class TestPreamble:
    def test_new_assembler_holds_only_preamble(self):
        assembler = ScriptAssembler()
        assert assembler.fragments == (PREAMBLE,)
        assert assembler.get_script() == PREAMBLE

    def test_preamble_creates_casper(self):
        assert "require('casper').create(" in PREAMBLE
        assert "colorizerType: 'Dummy'" in PREAMBLE

    def test_closing_emits_tagged_lines(self):
        assert "'CURRENT_URL:' + this.getCurrentUrl()" in CLOSING
        assert "'PAGE_CONTENT:' + JSON.stringify(this.getHTML())" in CLOSING
        assert CLOSING.rstrip().endswith("casper.run();")


class TestOrdering:
    """Fragments are emitted exactly in call order."""

    CALLS = {
        "viewport": lambda a: a.set_viewport(1024, 768),
        "click": lambda a: a.click("a.next"),
        "wait": lambda a: a.wait(200),
        "agent": lambda a: a.set_user_agent("UA"),
    }

    @pytest.mark.parametrize("order", list(itertools.permutations(CALLS)))
    def test_emission_follows_call_order(self, order):
        assembler = ScriptAssembler()
        for name in order:
            self.CALLS[name](assembler)

        expected = [_single(self.CALLS[name]) for name in order]
        assert assembler.fragments == (PREAMBLE, *expected)
        assert assembler.get_script() == PREAMBLE + "".join(expected)

    def test_builders_return_same_instance(self):
        assembler = ScriptAssembler()
        chained = (
            assembler.start("http://x/")
            .set_user_agent("UA")
            .evaluate("document.title = 'x';")
            .wait_for_selector("#a", 10)
            .set_viewport(1, 1)
            .wait(0)
            .click("#b")
            .set_accept_language(["en"])
            .set_cookies([{"name": "a", "value": "b"}])
            .load_cookies("/nonexistent/cookies.json")
            .save_cookies("/tmp/cookies.json")
            .set_headers({})
            .append_to_script("// done")
        )
        assert chained is assembler

    def test_get_script_does_not_mutate(self):
        assembler = ScriptAssembler().click("#a")
        first = assembler.get_script()
        assert assembler.get_script() == first
        assert len(assembler.fragments) == 2


class TestStart:
    def test_no_options_emit_null(self):
        fragment = _single(lambda a: a.start("http://x/"))
        assert 'this.open("http://x/", null);' in fragment
        assert "casper.start().then(" in fragment

    def test_empty_options_emit_empty_object(self):
        fragment = _single(lambda a: a.start("http://x/", {}))
        assert 'this.open("http://x/", {});' in fragment

    def test_options_emit_object_literal(self):
        fragment = _single(
            lambda a: a.start("http://x/", {"method": "post", "data": {"q": "1"}})
        )
        assert 'this.open("http://x/", {"method": "post", "data": {"q": "1"}});' in fragment


class TestWaits:
    def test_wait_for_selector(self):
        fragment = _single(lambda a: a.wait_for_selector("#main", 5000))
        assert fragment.count('"#main"') == 3
        assert "'TIMEOUT:' + JSON.stringify(\"#main\") + ' not found after 5000 ms'" in fragment
        assert "'found selector ' + JSON.stringify(\"#main\")" in fragment
        assert fragment.rstrip().endswith("5000\n);")

    def test_zero_timeout_is_allowed(self):
        fragment = _single(lambda a: a.wait_for_selector("#main", 0))
        assert "not found after 0 ms" in fragment

    def test_wait_emits_timeout_without_selector(self):
        fragment = _single(lambda a: a.wait(1500))
        assert "casper.wait(\n    1500," in fragment
        assert "'TIMEOUT:after waiting 1500 ms'" in fragment

    @pytest.mark.parametrize("bad", [-1, 1.5, "100", None, True])
    def test_invalid_timeouts_rejected(self, bad):
        assembler = ScriptAssembler()
        with pytest.raises(ValueError):
            assembler.wait(bad)
        with pytest.raises(ValueError):
            assembler.wait_for_selector("#a", bad)
        assert assembler.fragments == (PREAMBLE,)


class TestViewportAndClick:
    def test_viewport(self):
        fragment = _single(lambda a: a.set_viewport(1280, 720))
        assert "this.viewport(1280, 720);" in fragment

    @pytest.mark.parametrize("width,height", [(0, 10), (10, 0), (-5, 10), (10.0, 10)])
    def test_viewport_requires_positive_integers(self, width, height):
        assembler = ScriptAssembler()
        with pytest.raises(ValueError):
            assembler.set_viewport(width, height)
        assert assembler.fragments == (PREAMBLE,)

    def test_click(self):
        fragment = _single(lambda a: a.click("button[type='submit']"))
        assert "this.click(\"button[type='submit']\");" in fragment


class TestEvaluateAndAppend:
    def test_evaluate_wraps_code_verbatim(self):
        code = "document.querySelector('#q').value = \"x\";"
        fragment = _single(lambda a: a.evaluate(code))
        assert code in fragment
        assert "casper.evaluate(function() {" in fragment

    def test_append_to_script_is_raw(self):
        fragment = _single(lambda a: a.append_to_script("casper.echo('hi');"))
        assert fragment == "casper.echo('hi');\n"


class TestHeaders:
    def test_accept_encoding_is_suppressed(self):
        fragment = _single(lambda a: a.set_headers({"Accept-Encoding": "gzip", "X-Test": "1"}))
        assert '"X-Test": "1"' in fragment
        assert "Accept-Encoding" not in fragment

    def test_accept_encoding_suppressed_case_insensitively(self):
        fragment = _single(lambda a: a.set_headers({"accept-encoding": "br"}))
        assert "accept-encoding" not in fragment

    def test_empty_headers_still_emit_object(self):
        fragment = _single(lambda a: a.set_headers({}))
        assert fragment == "\ncasper.page.customHeaders = {\n};\n"

    def test_list_values_joined_with_commas(self):
        fragment = _single(lambda a: a.set_headers({"X-Multi": ["a", "b", "c"]}))
        assert '"X-Multi": "a,b,c"' in fragment

    def test_multiple_headers(self):
        fragment = _single(lambda a: a.set_headers({"X-A": "1", "X-B": "2"}))
        assert 'casper.page.customHeaders = {\n    "X-A": "1",\n    "X-B": "2"\n};' in fragment

    def test_accept_language(self):
        via_helper = _single(lambda a: a.set_accept_language(["en-US", "fr"]))
        via_headers = _single(lambda a: a.set_headers({"Accept-Language": ["en-US", "fr"]}))
        assert via_helper == via_headers
        assert '"Accept-Language": "en-US,fr"' in via_helper


class TestCookies:
    @pytest.mark.parametrize("empty", [[], {}, (), None])
    def test_empty_cookies_are_noop(self, empty):
        assembler = ScriptAssembler()
        assembler.set_cookies(empty)
        assert assembler.fragments == (PREAMBLE,)

    def test_cookies_assignment(self):
        fragment = _single(lambda a: a.set_cookies([{"name": "a", "value": "b"}]))
        assert fragment == '\nphantom.cookies = [{"name": "a", "value": "b"}];\n'

    def test_single_mapping_is_one_record(self):
        fragment = _single(lambda a: a.set_cookies({"name": "a", "value": "b"}))
        assert 'phantom.cookies = [{"name": "a", "value": "b"}];' in fragment

    def test_load_missing_file_is_noop(self):
        assembler = ScriptAssembler()
        assembler.load_cookies("/nonexistent/path")
        assert assembler.fragments == (PREAMBLE,)

    @pytest.mark.parametrize("content", ["", "not json", "[]", "{}", "null", "42", '["a"]'])
    def test_load_unusable_file_is_noop(self, tmp_path, content):
        path = tmp_path / "cookies.json"
        path.write_text(content)

        assembler = ScriptAssembler()
        assembler.load_cookies(path)
        assert assembler.fragments == (PREAMBLE,)

    def test_load_directory_is_noop(self, tmp_path):
        assembler = ScriptAssembler()
        assembler.load_cookies(tmp_path)
        assert assembler.fragments == (PREAMBLE,)

    def test_load_unreachable_file_is_noop(self, tmp_path):
        path = tmp_path / "locked" / "cookies.json"

        assembler = ScriptAssembler()
        with patch.object(Path, "is_file", side_effect=PermissionError(13, "Permission denied")):
            assembler.load_cookies(path)
        assert assembler.fragments == (PREAMBLE,)

    def test_load_unreadable_file_is_noop(self, tmp_path):
        path = tmp_path / "cookies.json"
        path.write_text('[{"name": "a", "value": "b"}]')

        assembler = ScriptAssembler()
        with patch.object(Path, "read_text", side_effect=PermissionError(13, "Permission denied")):
            assembler.load_cookies(path)
        assert assembler.fragments == (PREAMBLE,)

    def test_load_valid_file_delegates_to_set_cookies(self, tmp_path):
        cookies = [{"name": "sid", "value": "abc", "domain": ".example.com"}]
        path = tmp_path / "cookies.json"
        path.write_text(json.dumps(cookies))

        loaded = _single(lambda a: a.load_cookies(str(path)))
        direct = _single(lambda a: a.set_cookies(cookies))
        assert loaded == direct

    def test_save_cookies(self):
        fragment = _single(lambda a: a.save_cookies("/tmp/cookies.json"))
        assert "JSON.stringify(phantom.cookies)" in fragment
        assert "fs.write(\"/tmp/cookies.json\", cookies, 'w');" in fragment


class TestNoInjection:
    """Values meant as literals can never become code."""

    CASES = {
        "user_agent": lambda a: a.set_user_agent(INJECTION),
        "start": lambda a: a.start(INJECTION, {"data": INJECTION}),
        "click": lambda a: a.click(INJECTION),
        "wait_for_selector": lambda a: a.wait_for_selector(INJECTION, 10),
        "save_cookies": lambda a: a.save_cookies(INJECTION),
        "headers": lambda a: a.set_headers({INJECTION: INJECTION}),
        "cookies": lambda a: a.set_cookies([{"name": INJECTION, "value": INJECTION}]),
    }

    @pytest.mark.parametrize("name", list(CASES))
    def test_literal_values_are_escaped(self, name):
        fragment = _single(self.CASES[name])

        assert "phantom.exit" not in _code_outside_literals(fragment)
        assert any(INJECTION in literal for literal in _literals(fragment))

    def test_user_agent_literal_round_trips(self):
        fragment = _single(lambda a: a.set_user_agent(INJECTION))
        assert fragment == f"casper.userAgent({json.dumps(INJECTION)});\n"

    def test_line_separators_are_escaped(self):
        fragment = _single(lambda a: a.click("a\u2028b\u2029c"))
        assert "\u2028" not in fragment
        assert "\\u2028" in fragment
