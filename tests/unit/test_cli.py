"""Tests for the command-line entry point."""

import json
from unittest.mock import patch

from microphenom.cli import _level_bar, build_parser, main, write_result
from microphenom.core.models import AnalysisResult
from microphenom.services.analysis import AnalysisClient


def test_parser_subcommands():
    parser = build_parser()
    args = parser.parse_args(["record", "--device", "usb", "--out", "a.md"])
    assert (args.command, args.device, args.out) == ("record", "usb", "a.md")
    args = parser.parse_args(["serve", "--port", "9000"])
    assert args.port == 9000


def test_level_bar_scales_and_clamps():
    assert _level_bar(0.0) == "." * 20
    assert _level_bar(0.1) == "#" * 10 + "." * 10
    assert _level_bar(1.0) == "#" * 20


class TestWriteResult:
    def test_json_output(self, tmp_path, analysis_payload):
        out = tmp_path / "result.json"
        write_result(AnalysisResult.model_validate(analysis_payload), str(out))
        assert json.loads(out.read_text(encoding="utf-8")) == analysis_payload

    def test_markdown_output(self, tmp_path, analysis_payload):
        out = tmp_path / "result.md"
        report = write_result(AnalysisResult.model_validate(analysis_payload), str(out), 30)
        assert out.read_text(encoding="utf-8") == report
        assert "Duration: 00:30" in report

    def test_no_output_file(self, tmp_path, analysis_payload):
        report = write_result(AnalysisResult.model_validate(analysis_payload), None)
        assert report.startswith("# Interview Analysis")
        assert list(tmp_path.iterdir()) == []


class TestAnalyzeTextCommand:
    def test_success(self, tmp_path, mock_llm, analysis_payload, capsys):
        transcript = tmp_path / "interview.txt"
        transcript.write_text("I walked in and felt a tightness.", encoding="utf-8")
        out = tmp_path / "result.json"

        with patch("microphenom.cli.create_analysis_client", return_value=AnalysisClient(mock_llm)):
            code = main(["analyze-text", str(transcript), "--out", str(out)])

        assert code == 0
        assert json.loads(out.read_text(encoding="utf-8")) == analysis_payload
        assert "## Summary" in capsys.readouterr().out

    def test_backend_failure(self, tmp_path, mock_llm, capsys):
        transcript = tmp_path / "interview.txt"
        transcript.write_text("some text", encoding="utf-8")
        mock_llm.generate.side_effect = ConnectionError("offline")

        with patch("microphenom.cli.create_analysis_client", return_value=AnalysisClient(mock_llm)):
            code = main(["analyze-text", str(transcript)])

        assert code == 1
        assert "Analysis failed" in capsys.readouterr().out

    def test_empty_file(self, tmp_path, capsys):
        transcript = tmp_path / "empty.txt"
        transcript.write_text("  \n", encoding="utf-8")
        assert main(["analyze-text", str(transcript)]) == 1
        assert "empty" in capsys.readouterr().out


def test_guide_command(capsys):
    assert main(["guide"]) == 0
    assert "INTERVIEWER GUIDE" in capsys.readouterr().out


def test_devices_command(capsys):
    devices = [
        {"index": 0, "name": "Built-in Microphone", "max_input_channels": 1},
        {"index": 2, "name": "USB Headset", "max_input_channels": 2},
    ]
    with patch("microphenom.cli.list_input_devices", return_value=devices):
        assert main(["devices", "--match", "usb"]) == 0
    out = capsys.readouterr().out
    assert "[2] USB Headset (inputs: 2)" in out
    assert "Built-in" not in out
