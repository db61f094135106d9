# Copyright (c) 2023-2025 Datalayer, Inc.
# Distributed under the terms of the MIT License.

import os

from click.testing import CliRunner

from richtext_editor.cli import cli


def test_sanitize():
    runner = CliRunner()
    result = runner.invoke(cli, ["sanitize", "-"], input='<p class="MsoNormal">x<o:p></o:p></p>')
    assert result.exit_code == 0
    assert result.output.strip() == "<p>x</p>"


def test_to_text_and_to_html():
    runner = CliRunner()
    result = runner.invoke(cli, ["to-text", "-"], input="<p>a</p><p>b</p>")
    assert result.output == "a\n\nb\n"

    result = runner.invoke(cli, ["to-html", "-"], input="a\n\nb")
    assert result.output.strip() == "<p>a</p><p>b</p>"


def test_export(tmp_path):
    source = tmp_path / "body.html"
    source.write_text("<p>x</p>", encoding="utf-8")
    runner = CliRunner()
    result = runner.invoke(cli, ["export", str(source), "--output-dir", str(tmp_path / "out")])
    assert result.exit_code == 0
    path = result.output.strip()
    assert os.path.basename(path) == "document.html"
    with open(path, encoding="utf-8") as f:
        assert f.read().startswith("<!doctype html>")
