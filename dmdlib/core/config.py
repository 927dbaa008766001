#!/usr/bin/env python3

"""
Configuration for dmd2video runs.

Settings come from code defaults, optionally overlaid by a YAML config file,
then by command line overrides. The merged mapping is coerced and validated
into a DmdConfig that is passed into the pipeline.
"""

import copy
import os
import yaml
from dmdlib.core.errors import ConfigError

CONFIG_HEADER_KEY = "dmd2video"
CONFIG_HEADER_VALUE = 1

PRESETS = {
	'grid': {'pixel_size': 10, 'pixel_gap': 1},
	'raw': {'pixel_size': 1, 'pixel_gap': 0},
}

BRIGHTNESS_MODES = ('gamma', 'linear')

#============================================

def default_config() -> dict:
	"""
	Build the default config dictionary.

	Returns:
		dict: Default config.
	"""
	return {
		CONFIG_HEADER_KEY: CONFIG_HEADER_VALUE,
		'settings': {
			'paths': {
				'input_root': None,
				'output_root': 'output',
				'recording_extension': '.json',
				'video_extension': '.mp4',
			},
			'canvas': {
				'width': 128,
				'height': 32,
			},
			'render': {
				'pixel_size': 10,
				'pixel_gap': 1,
				'brightness': 'gamma',
				'gamma': 2.2,
				'color': [191, 87, 0],
			},
			'encode': {
				'ffmpeg_bin': 'ffmpeg',
				'display_scale': 10,
				'scale_flags': 'neighbor',
				'frame_rate': 25,
				'video_codec': 'libx264',
				'crf': 18,
				'pixel_format': 'yuv420p',
			},
			'io': {
				'keep_temp': False,
			},
		},
	}

#============================================

def write_config_file(config_path: str, config: dict) -> None:
	"""
	Write a config file to disk.

	Args:
		config_path: Output file path.
		config: Config dictionary.
	"""
	os.makedirs(os.path.dirname(config_path) or ".", exist_ok=True)
	with open(config_path, "w", encoding="utf-8") as handle:
		yaml.safe_dump(config, handle, sort_keys=False)

#============================================

def load_config(config_path: str) -> dict:
	"""
	Load a config file from disk and overlay it on the defaults.

	Args:
		config_path: Config file path.

	Returns:
		dict: Merged config mapping.
	"""
	try:
		with open(config_path, "r", encoding="utf-8") as handle:
			data = yaml.safe_load(handle)
	except OSError as exc:
		raise ConfigError(f"cannot read config {config_path}: {exc}") from exc
	except yaml.YAMLError as exc:
		raise ConfigError(f"config {config_path} is not valid YAML: {exc}") from exc
	if not isinstance(data, dict):
		raise ConfigError("config file must be a mapping")
	if data.get(CONFIG_HEADER_KEY) != CONFIG_HEADER_VALUE:
		raise ConfigError(
			f"config file must set {CONFIG_HEADER_KEY}: {CONFIG_HEADER_VALUE}"
		)
	merged = default_config()
	settings = data.get('settings', {})
	if settings is None:
		settings = {}
	if not isinstance(settings, dict):
		raise ConfigError(f"config {config_path}: settings must be a mapping")
	for section, values in settings.items():
		if section not in merged['settings']:
			raise ConfigError(f"config {config_path}: unknown section settings.{section}")
		if not isinstance(values, dict):
			raise ConfigError(f"config {config_path}: settings.{section} must be a mapping")
		merged['settings'][section].update(values)
	return merged

#============================================

def apply_overrides(config: dict, overrides: dict) -> dict:
	"""
	Overlay dotted-key overrides such as 'render.gamma' on a config mapping.
	"""
	merged = copy.deepcopy(config)
	for key_path, value in overrides.items():
		if value is None:
			continue
		section, key = key_path.split('.', 1)
		merged['settings'][section][key] = value
	return merged

#============================================

def apply_preset(config: dict, preset_name: str) -> dict:
	preset = PRESETS.get(preset_name)
	if preset is None:
		raise ConfigError(f"unknown preset {preset_name}, use one of {sorted(PRESETS)}")
	overrides = {f"render.{key}": value for key, value in preset.items()}
	return apply_overrides(config, overrides)

#============================================

def coerce_number(value, config_path: str, key_path: str) -> float:
	if isinstance(value, bool):
		raise ConfigError(f"config {config_path}: {key_path} must be a number")
	if isinstance(value, (int, float)):
		return float(value)
	if isinstance(value, str):
		try:
			return float(value)
		except ValueError:
			pass
	raise ConfigError(f"config {config_path}: {key_path} must be a number")

#============================================

def coerce_int(value, config_path: str, key_path: str) -> int:
	if isinstance(value, bool):
		raise ConfigError(f"config {config_path}: {key_path} must be an integer")
	if isinstance(value, int):
		return value
	if isinstance(value, float) and value.is_integer():
		return int(value)
	if isinstance(value, str):
		try:
			return int(value)
		except ValueError:
			pass
	raise ConfigError(f"config {config_path}: {key_path} must be an integer")

#============================================

def coerce_str(value, config_path: str, key_path: str) -> str:
	if isinstance(value, str):
		return value
	raise ConfigError(f"config {config_path}: {key_path} must be a string")

#============================================

def coerce_optional_int(value, config_path: str, key_path: str):
	if value is None:
		return None
	return coerce_int(value, config_path, key_path)

#============================================

def coerce_color(value, config_path: str, key_path: str) -> tuple:
	if not isinstance(value, (list, tuple)) or len(value) != 3:
		raise ConfigError(f"config {config_path}: {key_path} must be [r, g, b]")
	color = tuple(coerce_int(channel, config_path, key_path) for channel in value)
	for channel in color:
		if channel < 0 or channel > 255:
			raise ConfigError(f"config {config_path}: {key_path} channels must be 0..255")
	return color

#============================================

class DmdConfig():
	def __init__(self):
		self.input_root = None
		self.output_root = 'output'
		self.recording_extension = '.json'
		self.video_extension = '.mp4'
		self.canvas_width = 128
		self.canvas_height = 32
		self.pixel_size = 10
		self.pixel_gap = 1
		self.brightness = 'gamma'
		self.gamma = 2.2
		self.color = (191, 87, 0)
		self.ffmpeg_bin = 'ffmpeg'
		self.display_scale = 10
		self.scale_flags = 'neighbor'
		self.frame_rate = 25
		self.video_codec = 'libx264'
		self.crf = 18
		self.pixel_format = 'yuv420p'
		self.keep_temp = False
		self.dry_run = False

	#============================
	def effective_gamma(self) -> float:
		if self.brightness == 'linear':
			return 1.0
		return self.gamma

	#============================
	def __repr__(self) -> str:
		return (
			f"DmdConfig(input_root={self.input_root!r}, "
			f"output_root={self.output_root!r}, pixel_size={self.pixel_size}, "
			f"brightness={self.brightness!r}, gamma={self.gamma})"
		)

#============================================

def build_settings(config: dict, config_path: str = "<code defaults>") -> DmdConfig:
	"""
	Coerce and validate a config mapping.

	Args:
		config: Config mapping, as returned by default_config or load_config.
		config_path: Path used in error messages.

	Returns:
		DmdConfig: Validated settings.
	"""
	settings = config.get('settings', {})
	paths = settings.get('paths', {})
	canvas = settings.get('canvas', {})
	render = settings.get('render', {})
	encode = settings.get('encode', {})
	io = settings.get('io', {})
	result = DmdConfig()

	input_root = paths.get('input_root')
	if input_root is not None:
		input_root = coerce_str(input_root, config_path, 'settings.paths.input_root')
	result.input_root = input_root
	result.output_root = coerce_str(paths.get('output_root', 'output'),
		config_path, 'settings.paths.output_root')
	result.recording_extension = coerce_str(paths.get('recording_extension', '.json'),
		config_path, 'settings.paths.recording_extension')
	result.video_extension = coerce_str(paths.get('video_extension', '.mp4'),
		config_path, 'settings.paths.video_extension')
	if not result.recording_extension.startswith('.'):
		raise ConfigError("recording_extension must start with '.'")
	if not result.video_extension.startswith('.'):
		raise ConfigError("video_extension must start with '.'")

	result.canvas_width = coerce_optional_int(canvas.get('width'),
		config_path, 'settings.canvas.width')
	result.canvas_height = coerce_optional_int(canvas.get('height'),
		config_path, 'settings.canvas.height')
	if result.canvas_width is not None and result.canvas_width <= 0:
		raise ConfigError("canvas width must be > 0")
	if result.canvas_height is not None and result.canvas_height <= 0:
		raise ConfigError("canvas height must be > 0")

	result.pixel_size = coerce_int(render.get('pixel_size', 10),
		config_path, 'settings.render.pixel_size')
	result.pixel_gap = coerce_int(render.get('pixel_gap', 1),
		config_path, 'settings.render.pixel_gap')
	result.brightness = coerce_str(render.get('brightness', 'gamma'),
		config_path, 'settings.render.brightness').lower()
	result.gamma = coerce_number(render.get('gamma', 2.2),
		config_path, 'settings.render.gamma')
	result.color = coerce_color(render.get('color', [191, 87, 0]),
		config_path, 'settings.render.color')
	if result.pixel_size < 1:
		raise ConfigError("pixel_size must be >= 1")
	if result.pixel_gap < 0 or result.pixel_gap >= result.pixel_size:
		raise ConfigError("pixel_gap must be 0..pixel_size-1")
	if result.brightness not in BRIGHTNESS_MODES:
		raise ConfigError(f"brightness must be one of {', '.join(BRIGHTNESS_MODES)}")
	if result.gamma <= 0:
		raise ConfigError("gamma must be > 0")

	result.ffmpeg_bin = coerce_str(encode.get('ffmpeg_bin', 'ffmpeg'),
		config_path, 'settings.encode.ffmpeg_bin')
	result.display_scale = coerce_int(encode.get('display_scale', 10),
		config_path, 'settings.encode.display_scale')
	result.scale_flags = coerce_str(encode.get('scale_flags', 'neighbor'),
		config_path, 'settings.encode.scale_flags')
	result.frame_rate = coerce_number(encode.get('frame_rate', 25),
		config_path, 'settings.encode.frame_rate')
	result.video_codec = coerce_str(encode.get('video_codec', 'libx264'),
		config_path, 'settings.encode.video_codec')
	result.crf = coerce_int(encode.get('crf', 18),
		config_path, 'settings.encode.crf')
	result.pixel_format = coerce_str(encode.get('pixel_format', 'yuv420p'),
		config_path, 'settings.encode.pixel_format')
	if result.display_scale < 1:
		raise ConfigError("display_scale must be >= 1")
	if result.frame_rate <= 0:
		raise ConfigError("frame_rate must be > 0")

	keep_temp = io.get('keep_temp', False)
	if not isinstance(keep_temp, bool):
		raise ConfigError(f"config {config_path}: settings.io.keep_temp must be true or false")
	result.keep_temp = keep_temp
	return result
