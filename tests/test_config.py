"""
Pytest coverage for config loading and the command line entry point.
"""

# Standard Library
import os
import sys

# PIP3 modules
import pytest
import yaml

REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if REPO_ROOT not in sys.path:
	sys.path.insert(0, REPO_ROOT)

TESTS_DIR = os.path.abspath(os.path.dirname(__file__))
if TESTS_DIR not in sys.path:
	sys.path.insert(0, TESTS_DIR)
from recording_utils import make_frame
from recording_utils import write_recording

# local repo modules
import dmd_cli
from dmdlib.core import config as dmdconfig
from dmdlib.core.errors import ConfigError

#============================================

def test_defaults() -> None:
	settings = dmdconfig.build_settings(dmdconfig.default_config())
	assert settings.canvas_width == 128
	assert settings.canvas_height == 32
	assert settings.pixel_size == 10
	assert settings.pixel_gap == 1
	assert settings.color == (191, 87, 0)
	assert settings.effective_gamma() == 2.2
	assert settings.display_scale == 10

#============================================

def test_linear_mode_uses_unit_gamma() -> None:
	config = dmdconfig.apply_overrides(dmdconfig.default_config(),
		{'render.brightness': 'linear'})
	settings = dmdconfig.build_settings(config)
	assert settings.effective_gamma() == 1.0

#============================================

def test_raw_preset() -> None:
	config = dmdconfig.apply_preset(dmdconfig.default_config(), 'raw')
	settings = dmdconfig.build_settings(config)
	assert (settings.pixel_size, settings.pixel_gap) == (1, 0)
	with pytest.raises(ConfigError):
		dmdconfig.apply_preset(dmdconfig.default_config(), 'sparkle')

#============================================

@pytest.mark.parametrize("key_path, value", [
	('render.pixel_size', 0),
	('render.pixel_gap', 10),
	('render.pixel_gap', -1),
	('render.gamma', 0),
	('render.gamma', "bright"),
	('render.brightness', 'sepia'),
	('render.color', [300, 0, 0]),
	('render.color', "amber"),
	('encode.display_scale', 0),
	('encode.frame_rate', 0),
	('io.keep_temp', "yes"),
	('paths.video_extension', "mp4"),
])
def test_invalid_values(key_path: str, value) -> None:
	config = dmdconfig.apply_overrides(dmdconfig.default_config(), {key_path: value})
	with pytest.raises(ConfigError):
		dmdconfig.build_settings(config)

#============================================

def test_load_config_overlays_defaults(tmp_path) -> None:
	path = tmp_path / "dmd.yaml"
	path.write_text(
		"dmd2video: 1\n"
		"settings:\n"
		"  render:\n"
		"    gamma: 1.8\n"
		"  canvas:\n"
		"    width: null\n"
	)
	settings = dmdconfig.build_settings(dmdconfig.load_config(str(path)), str(path))
	assert settings.gamma == 1.8
	assert settings.canvas_width is None
	assert settings.canvas_height == 32
	assert settings.pixel_size == 10

#============================================

@pytest.mark.parametrize("text", [
	"settings: {}\n",
	"- just a list\n",
	"dmd2video: 1\nsettings:\n  sound: {volume: 11}\n",
	"dmd2video: 1\nsettings: [1, 2]\n",
])
def test_load_config_rejects(tmp_path, text: str) -> None:
	path = tmp_path / "dmd.yaml"
	path.write_text(text)
	with pytest.raises(ConfigError):
		dmdconfig.load_config(str(path))

#============================================

def test_write_default_config_round_trip(tmp_path) -> None:
	path = str(tmp_path / "conf" / "dmd.yaml")
	assert dmd_cli.main(["--write-default-config", path]) == 0
	with open(path, encoding="utf-8") as handle:
		data = yaml.safe_load(handle)
	assert data['dmd2video'] == 1
	settings = dmdconfig.build_settings(dmdconfig.load_config(path), path)
	assert settings.gamma == 2.2
	assert dmd_cli.main(["--write-default-config", path]) == 2

#============================================

def test_cli_overrides_config(tmp_path) -> None:
	path = tmp_path / "dmd.yaml"
	path.write_text("dmd2video: 1\nsettings:\n  render:\n    gamma: 1.8\n")
	args = dmd_cli.parse_args(["-c", str(path), "-i", "in", "-o", "out",
		"--linear", "--preset", "raw", "-k"])
	settings = dmd_cli.build_config(args)
	assert settings.input_root == "in"
	assert settings.output_root == "out"
	assert settings.brightness == "linear"
	assert settings.pixel_size == 1
	assert settings.keep_temp is True

#============================================

def test_cli_dry_run(monkeypatch, tmp_path, capsys) -> None:
	monkeypatch.delenv("DMD2VIDEO_QUIET", raising=False)
	in_root = tmp_path / "in"
	frames = [make_frame(0, width=128, height=32), make_frame(1, width=128, height=32)]
	write_recording(str(in_root / "rec.json"), frames)
	write_recording(str(in_root / "small.json"), [make_frame(0, width=8, height=4)])
	code = dmd_cli.main(["-n", "-i", str(in_root), "-o", str(tmp_path / "out")])
	captured = capsys.readouterr()
	assert code == 1
	assert "valid" in captured.out
	assert "0 converted, 0 skipped, 1 failed, 1 validated" in captured.out
	assert "[bitmap]" in captured.err
	assert not os.path.exists(str(tmp_path / "out"))

#============================================

def test_cli_missing_input() -> None:
	assert dmd_cli.main(["-n"]) == 2
