import json

from cuda_verify import cli
from cuda_verify.formatting import format_bytes, format_result
from cuda_verify.probes import CountsAs, failed, warned


def run(capsys, monkeypatch, config, *argv):
    monkeypatch.setattr(cli, "DEFAULT_CONFIG", config)
    status = cli.main(list(argv))
    return status, capsys.readouterr().out


def test_plain_output_ready(installed, config, capsys, monkeypatch):
    status, out = run(capsys, monkeypatch, config, "--no-color")
    assert status == 0
    assert "[1/10] Checking GPU detection..." in out
    assert "Passed: 12" in out
    assert "Failed: 0" in out
    assert "NEXT STEPS" in out
    assert "RECOMMENDED ACTIONS" not in out


def test_plain_output_missing_driver(installed, config, capsys, monkeypatch):
    installed.remove_tool("nvidia-smi")
    status, out = run(capsys, monkeypatch, config, "--no-color")
    assert status == 1
    assert "⚠ System mostly ready, but some issues need attention" in out
    assert "1. Install NVIDIA driver:" in out
    assert "2. " not in out


def test_json_output(host, config, capsys, monkeypatch):
    status, out = run(capsys, monkeypatch, config, "--json")
    payload = json.loads(out)
    assert status == 1
    assert payload["failed"] == 10
    assert len(payload["steps"]) == 10
    assert payload["steps"][0]["results"][0]["outcome"] == "fail"
    assert len(payload["recommendations"]) == 4


def test_rich_output(installed, config, capsys, monkeypatch):
    status, out = run(capsys, monkeypatch, config, "--ui")
    assert status == 0
    assert "Your system is ready!" in out


def test_options_override_config():
    args = cli.build_parser().parse_args(["--gpu-model", "A100", "--libdevice", "/a", "--libdevice", "/b"])
    config = cli.config_from_args(args)
    assert config.gpu_model == "A100"
    assert config.libdevice_candidates == ("/a", "/b")


def test_result_colors_and_details():
    text = format_result(failed("CUDA_HOME is not set", "Add to ~/.bashrc: export CUDA_HOME=/usr"))
    assert text.startswith("\033[0;31m✗\033[0m CUDA_HOME is not set")
    assert text.endswith("\n  Add to ~/.bashrc: export CUDA_HOME=/usr")
    plain = format_result(warned("note", counts_as=CountsAs.NONE), color=False)
    assert plain == "⚠ note"


def test_format_bytes():
    assert format_bytes(512) == "512.0 B"
    assert format_bytes(468 * 1024) == "468.0 KiB"
