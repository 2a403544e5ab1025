"""Tests for the evaluate output governor."""

import datetime
import json
import os
import tempfile

from shakespeare_mcp import config
from shakespeare_mcp.output import (
    UNDEFINED,
    SizePolicy,
    default_output_path,
    govern_output,
    stringify,
)


# ── stringify ───────────────────────────────────────────────────


class TestStringify:
    def test_undefined(self):
        assert stringify(UNDEFINED) == "undefined"

    def test_null(self):
        assert stringify(None) == "null"

    def test_string_passes_through(self):
        assert stringify("<html></html>") == "<html></html>"

    def test_number(self):
        assert stringify(2) == "2"

    def test_bool(self):
        assert stringify(True) == "true"

    def test_dict_is_indented(self):
        assert stringify({"a": 1}) == '{\n  "a": 1\n}'

    def test_unicode_kept(self):
        assert stringify(["café"]) == '[\n  "café"\n]'

    def test_date(self):
        assert stringify(datetime.datetime(2026, 1, 1)) == '"2026-01-01T00:00:00.000Z"'

    def test_aware_date_converted_to_utc(self):
        tz = datetime.timezone(datetime.timedelta(hours=2))
        value = datetime.datetime(2026, 1, 1, 12, 30, 0, 250000, tzinfo=tz)
        assert stringify(value) == '"2026-01-01T10:30:00.250Z"'

    def test_date_inside_list(self):
        result = stringify([datetime.datetime(2026, 1, 1)])
        assert json.loads(result) == ["2026-01-01T00:00:00.000Z"]

    def test_nan_is_null(self):
        assert stringify(float("nan")) == "null"

    def test_infinity_nested_is_null(self):
        result = stringify({"a": float("inf"), "b": [float("-inf"), 1.5]})
        assert json.loads(result) == {"a": None, "b": [None, 1.5]}


# ── govern_output ───────────────────────────────────────────────


class TestDirectMode:
    def test_small_result_inline(self, tmp_path):
        path = tmp_path / "out.html"
        policy = SizePolicy(size_limit=100, output_path=str(path))
        assert govern_output({"a": 1}, policy) == json.dumps({"a": 1}, indent=2)
        assert not path.exists()

    def test_exactly_at_limit_stays_inline(self, tmp_path):
        path = tmp_path / "out.html"
        policy = SizePolicy(size_limit=10, output_path=str(path))
        assert govern_output("x" * 10, policy) == "x" * 10
        assert not path.exists()

    def test_over_limit_goes_to_file(self, tmp_path):
        path = tmp_path / "out.html"
        text = "y" * 1500
        policy = SizePolicy(size_limit=1000, output_path=str(path))
        result = govern_output(text, policy)
        assert result.startswith(f"Output written to file: {path}")
        assert "1,500 chars" in result
        assert "1,000 char limit" in result
        assert path.read_text(encoding="utf-8") == text

    def test_over_limit_structured_value(self, tmp_path):
        path = tmp_path / "out.html"
        value = {"items": list(range(50))}
        policy = SizePolicy(size_limit=20, output_path=str(path))
        govern_output(value, policy)
        assert json.loads(path.read_text(encoding="utf-8")) == value


class TestFileMode:
    def test_small_result_still_written(self, tmp_path):
        path = tmp_path / "out.html"
        policy = SizePolicy(size_limit=100, output_mode="file", output_path=str(path))
        result = govern_output("hello", policy)
        assert f"Output written to file: {path}" in result
        assert "exceeds" not in result
        assert path.read_text(encoding="utf-8") == "hello"

    def test_large_result_no_fallback_advisory(self, tmp_path):
        path = tmp_path / "out.html"
        policy = SizePolicy(size_limit=3, output_mode="file", output_path=str(path))
        result = govern_output("hello", policy)
        assert "exceeds" not in result
        assert path.read_text(encoding="utf-8") == "hello"

    def test_overwrites_existing_file(self, tmp_path):
        path = tmp_path / "out.html"
        path.write_text("old contents that are longer", encoding="utf-8")
        policy = SizePolicy(output_mode="file", output_path=str(path))
        govern_output("new", policy)
        assert path.read_text(encoding="utf-8") == "new"

    def test_creates_parent_dirs(self, tmp_path):
        path = tmp_path / "nested" / "dir" / "out.html"
        policy = SizePolicy(output_mode="file", output_path=str(path))
        govern_output("x", policy)
        assert path.exists()

    def test_undefined_written_literally(self, tmp_path):
        path = tmp_path / "out.html"
        policy = SizePolicy(output_mode="file", output_path=str(path))
        govern_output(UNDEFINED, policy)
        assert path.read_text(encoding="utf-8") == "undefined"


# ── SizePolicy defaults ─────────────────────────────────────────


class TestSizePolicy:
    def test_defaults(self):
        policy = SizePolicy()
        assert policy.size_limit == 200_000
        assert policy.output_mode == "direct"

    def test_default_path_in_tempdir(self):
        path = default_output_path()
        assert os.path.dirname(path) == tempfile.gettempdir()
        name = os.path.basename(path)
        assert name.startswith(config.OUTPUT_PREFIX + "-")
        assert name.endswith(".html")
