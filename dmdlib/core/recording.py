#!/usr/bin/env python3

import json
import os
import re
from dmdlib.core.errors import MalformedBitmapError
from dmdlib.core.errors import ParseError
from dmdlib.core.errors import SchemaError

NON_HEX_RE = re.compile(r"[^0-9a-fA-F]")
MAX_RECORDING_BYTES = 10 ** 8

#============================================

class DmdFrame():
	def __init__(self, index: int, duration: int, bitmap: list, occurrence: int = 0):
		self.index = index
		self.duration = duration
		# rows of ints 0..15
		self.bitmap = bitmap
		self.occurrence = occurrence

	#============================
	@property
	def height(self) -> int:
		return len(self.bitmap)

	#============================
	@property
	def width(self) -> int:
		if len(self.bitmap) == 0:
			return 0
		return len(self.bitmap[0])

	#============================
	def __repr__(self) -> str:
		return (f"DmdFrame(index={self.index}, duration={self.duration}, "
			f"size={self.width}x{self.height})")

#============================================

class DmdRecording():
	def __init__(self, source: str, frames: list, width: int, height: int):
		self.source = source
		self.frames = frames
		self.width = width
		self.height = height

	#============================
	def total_duration_ms(self) -> int:
		return sum(frame.duration for frame in self.frames)

	#============================
	def index_width(self) -> int:
		"""Zero-pad width for artifact names, wide enough for the largest index."""
		largest = max(frame.index for frame in self.frames)
		return max(5, len(str(largest)))

#============================================

def clean_row(row: str) -> list:
	"""
	Strip separators from one bitmap row and return its brightness digits.
	"""
	digits = NON_HEX_RE.sub("", row)
	return [int(digit, 16) for digit in digits]

#============================================

def _require_int(frame_data: dict, key: str, position: int) -> int:
	value = frame_data.get(key)
	if value is None:
		raise SchemaError(f"frame {position}: missing required field '{key}'")
	if isinstance(value, bool) or not isinstance(value, int):
		raise SchemaError(f"frame {position}: '{key}' must be an integer")
	return value

#============================================

def parse_frame(frame_data, position: int) -> DmdFrame:
	"""
	Build one frame from its decoded JSON object.

	Args:
		frame_data: Decoded frame mapping.
		position: Position of the frame in storage order, for messages.

	Returns:
		DmdFrame: Frame with a cleaned bitmap.
	"""
	if not isinstance(frame_data, dict):
		raise SchemaError(f"frame {position}: must be an object")
	key = 'index'
	if 'index' not in frame_data and 'frame_num' in frame_data:
		key = 'frame_num'
	index = _require_int(frame_data, key, position)
	if index < 0:
		raise SchemaError(f"frame {position}: index must be non-negative")
	duration = _require_int(frame_data, 'duration', position)
	if duration <= 0:
		raise SchemaError(f"frame {position}: duration must be positive, got {duration}")
	raw_bitmap = frame_data.get('bitmap')
	if raw_bitmap is None:
		raise SchemaError(f"frame {position}: missing required field 'bitmap'")
	if not isinstance(raw_bitmap, list):
		raise SchemaError(f"frame {position}: bitmap must be a list of strings")
	rows = []
	for row in raw_bitmap:
		if not isinstance(row, str):
			raise SchemaError(f"frame {position}: bitmap rows must be strings")
		rows.append(clean_row(row))
	if len(rows) == 0 or len(rows[0]) == 0:
		raise MalformedBitmapError(f"frame {position}: bitmap is empty")
	width = len(rows[0])
	for row_number, row in enumerate(rows):
		if len(row) != width:
			raise MalformedBitmapError(
				f"frame {position}: row {row_number} has {len(row)} pixels, expected {width}"
			)
	return DmdFrame(index, duration, rows)

#============================================

def parse_recording(text: str, source: str = "<memory>", canvas_width: int = None,
	canvas_height: int = None) -> DmdRecording:
	"""
	Parse recording content into frames sorted by index.

	Frames with the same index keep their storage order and get an increasing
	occurrence number. All frames must share one canvas size, and must match
	canvas_width/canvas_height when those are given.
	"""
	try:
		data = json.loads(text)
	except ValueError as exc:
		raise ParseError(f"{source}: invalid JSON: {exc}") from exc
	if not isinstance(data, dict):
		raise SchemaError(f"{source}: top level must be an object")
	raw_frames = data.get('frames')
	if raw_frames is None:
		raise SchemaError(f"{source}: missing required field 'frames'")
	if not isinstance(raw_frames, list):
		raise SchemaError(f"{source}: 'frames' must be a list")
	if len(raw_frames) == 0:
		raise SchemaError(f"{source}: 'frames' is empty")
	frames = [parse_frame(frame_data, position)
		for position, frame_data in enumerate(raw_frames)]
	width = frames[0].width
	height = frames[0].height
	for position, frame in enumerate(frames):
		if frame.width != width or frame.height != height:
			raise MalformedBitmapError(
				f"{source}: frame {position} is {frame.width}x{frame.height}, "
				f"expected {width}x{height}"
			)
	if canvas_width is not None and width != canvas_width:
		raise MalformedBitmapError(
			f"{source}: canvas width {width} does not match configured {canvas_width}"
		)
	if canvas_height is not None and height != canvas_height:
		raise MalformedBitmapError(
			f"{source}: canvas height {height} does not match configured {canvas_height}"
		)
	ordered = sorted(frames, key=lambda frame: frame.index)
	seen = {}
	for frame in ordered:
		frame.occurrence = seen.get(frame.index, 0)
		seen[frame.index] = frame.occurrence + 1
	return DmdRecording(source, ordered, width, height)

#============================================

def load_recording(recording_path: str, canvas_width: int = None,
	canvas_height: int = None) -> DmdRecording:
	try:
		file_size = os.path.getsize(recording_path)
		if file_size > MAX_RECORDING_BYTES:
			raise ParseError(f"{recording_path}: recording is larger than 100MB")
		with open(recording_path, 'r', encoding='utf-8') as data_file:
			text = data_file.read()
	except (OSError, UnicodeDecodeError) as exc:
		raise ParseError(f"cannot read {recording_path}: {exc}") from exc
	return parse_recording(text, recording_path, canvas_width, canvas_height)
