"""
CLI Tests

main() end to end with small JSON catalogues.
"""

import json
import re

import pytest

from pigment_mixer.core.mix_simulator import simulate
from pigment_mixer.core.spectral_model import curve_to_hex
from pigment_mixer.core.strategies import MixChoice
from pigment_mixer.main import build_parser, main
from pigment_mixer.pipeline import MixingPipeline

BW_COLORS = ["titanium_white", "ivory_black", "cadmium_red", "cadmium_yellow", "ultramarine_blue"]


def test_no_command_prints_help(capsys):
    assert main([]) == 0
    assert "usage" in capsys.readouterr().out.lower()


def test_strategies(capsys):
    assert main(["strategies"]) == 0
    out = capsys.readouterr().out
    for choice in MixChoice:
        assert choice.slug in out
        assert choice.label in out


def test_brands(catalogue_db, capsys):
    assert main(["brands", "--database", catalogue_db]) == 0
    out = capsys.readouterr().out
    assert "michael_harding" in out
    assert "Winton Oil Colour" in out


def test_mix_json_output(paints_json, tmp_path):
    output = tmp_path / "out" / "result.json"
    code = main(
        [
            "mix",
            "--target", "#8a6a3c",
            "--paints-json", str(paints_json),
            "--colors", *BW_COLORS,
            "--workers", "1",
            "--top-k", "2",
            "--json",
            "--output", str(output),
        ]
    )  # fmt: skip
    assert code == 0

    data = json.loads(output.read_text(encoding="utf-8"))
    assert data["strategy"] == MixChoice.BLACK_WHITE_2.label
    assert data["delta_e_method"] == "cie76"
    assert 1 <= len(data["results"]) <= 2
    assert [r["rank"] for r in data["results"]] == list(range(1, len(data["results"]) + 1))

    best = data["results"][0]
    assert len(best["paints"]) == 4
    assert {p["id"] for p in best["paints"]} >= {"titanium_white", "ivory_black"}
    assert sum(p["weight"] for p in best["paints"]) == pytest.approx(1.0, abs=1e-6)
    assert re.fullmatch(r"#[0-9a-f]{6}", best["hex"])


def test_mix_text_output_with_plot(paints_json, tmp_path, capsys):
    plot = tmp_path / "mix.png"
    code = main(
        [
            "mix",
            "--target", "55,10,20",
            "--paints-json", str(paints_json),
            "--colors", *BW_COLORS,
            "--workers", "1",
            "--top-k", "1",
            "--plot", str(plot),
        ]
    )  # fmt: skip
    assert code == 0
    assert "#1" in capsys.readouterr().out
    assert plot.exists() and plot.stat().st_size > 0


def test_mix_missing_black_exit_code(paints_json):
    code = main(
        [
            "mix",
            "--target", "#808080",
            "--paints-json", str(paints_json),
            "--colors", "titanium_white", "cadmium_red", "cadmium_yellow",
            "--workers", "1",
        ]
    )  # fmt: skip
    assert code == 2


def test_mix_missing_catalogue(tmp_path):
    assert main(["mix", "--target", "#808080", "--paints-json", str(tmp_path / "missing.json")]) == 1


@pytest.mark.parametrize("target", ["#zzzzzz", "10,20"])
def test_mix_invalid_target(paints_json, target):
    assert main(["mix", "--target", target, "--paints-json", str(paints_json), "--workers", "1"]) == 1


def test_mix_unknown_strategy(paints_json):
    assert main(["mix", "--target", "#808080", "--paints-json", str(paints_json), "--strategy", "glazes"]) == 1


def test_mix_requires_paint_source():
    assert main(["mix", "--target", "#808080"]) == 1


def test_test_mix(paints_json, paint_by_id, capsys):
    expected = curve_to_hex(simulate([paint_by_id["cadmium_red"], paint_by_id["cadmium_yellow"]], [0.5, 0.5]))

    code = main(
        ["test-mix", "--paints-json", str(paints_json), "--paint", "cadmium_red:1", "--paint", "cadmium_yellow:1"]
    )
    assert code == 0

    lines = [line for line in capsys.readouterr().out.splitlines() if line.strip()]
    assert lines[-1] == expected


def test_test_mix_json_stdout_is_parseable(paints_json, capsys):
    code = main(
        [
            "test-mix",
            "--paints-json", str(paints_json),
            "--paint", "titanium_white:3",
            "--paint", "ultramarine_blue:1",
            "--json",
        ]
    )  # fmt: skip
    assert code == 0

    captured = capsys.readouterr()
    data = json.loads(captured.out)
    assert [p["id"] for p in data["paints"]] == ["titanium_white", "ultramarine_blue"]
    assert [p["weight"] for p in data["paints"]] == pytest.approx([0.75, 0.25])
    assert "Loaded" in captured.err


def test_mix_json_stdout_is_parseable(paints_json, capsys):
    code = main(
        [
            "mix",
            "--target", "50,0,0",
            "--paints-json", str(paints_json),
            "--colors", *BW_COLORS,
            "--workers", "1",
            "--top-k", "1",
            "--json",
        ]
    )  # fmt: skip
    assert code == 0

    captured = capsys.readouterr()
    data = json.loads(captured.out)
    assert data["target_lab"] == {"L": 50.0, "a": 0.0, "b": 0.0}
    assert len(data["results"]) == 1
    assert "MixingPipeline initialized" in captured.err


def test_test_mix_uses_config(paints_json, tmp_json, monkeypatch):
    config_path = tmp_json({"ranking": {"top_k": 2}}, name="mixer.json")
    seen = []
    original = MixingPipeline.from_config.__func__

    def from_config(cls, config):
        seen.append(config.get("ranking.top_k"))
        return original(cls, config)

    monkeypatch.setattr(MixingPipeline, "from_config", classmethod(from_config))

    code = main(
        ["test-mix", "--paints-json", str(paints_json), "--config", str(config_path), "--paint", "cadmium_red:1"]
    )
    assert code == 0
    assert seen == [2]


def test_test_mix_unknown_paint(paints_json):
    assert main(["test-mix", "--paints-json", str(paints_json), "--paint", "lamp_black:1"]) == 1


def test_test_mix_bad_paint_argument(paints_json):
    assert main(["test-mix", "--paints-json", str(paints_json), "--paint", "cadmium_red"]) == 1


def test_parser_defaults():
    args = build_parser().parse_args(["mix", "--target", "#ffffff", "--brand", "michael_harding"])
    assert MixChoice.parse(args.strategy) is MixChoice.BLACK_WHITE_2
    assert args.workers is None
    assert not args.json
