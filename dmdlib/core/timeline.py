#!/usr/bin/env python3

"""
Segment timing for the ffmpeg concat demuxer.

The concat demuxer applies a 'duration' line to the 'file' line before it, and
a duration only takes effect once another 'file' line follows. A lone frame is
therefore written as file, duration, file (same image) so its hold time is kept.
"""

import os
from decimal import Decimal
from dmdlib.core import utils
from dmdlib.core.errors import AssemblyError

CONCAT_HEADER = "ffconcat version 1.0"

#============================================

def quote_concat_path(path: str) -> str:
	escaped = path.replace("'", "'\\''")
	return f"'{escaped}'"

#============================================

class TimelineDescriptor():
	def __init__(self):
		# ('file', path) or ('duration', Decimal seconds)
		self.directives = []

	#============================
	def add_file(self, image_path: str) -> None:
		self.directives.append(('file', image_path))

	#============================
	def add_duration(self, seconds: Decimal) -> None:
		self.directives.append(('duration', seconds))

	#============================
	def image_references(self) -> list:
		return [value for kind, value in self.directives if kind == 'file']

	#============================
	def durations(self) -> list:
		return [value for kind, value in self.directives if kind == 'duration']

	#============================
	def total_seconds(self) -> Decimal:
		return sum(self.durations(), Decimal(0))

	#============================
	def to_text(self, base_dir: str = None) -> str:
		lines = [CONCAT_HEADER]
		for kind, value in self.directives:
			if kind == 'file':
				path = value
				if base_dir is not None:
					path = os.path.relpath(value, base_dir)
				lines.append(f"file {quote_concat_path(path)}")
			else:
				lines.append(f"duration {utils.format_seconds(value)}")
		return "\n".join(lines) + "\n"

#============================================

def assemble(entries: list) -> TimelineDescriptor:
	"""
	Build the descriptor from (image_path, duration_ms) pairs in display order.

	Args:
		entries: Rendered frame images with their durations in milliseconds.

	Returns:
		TimelineDescriptor: One file/duration pair per entry, plus a closing
		file reference when there is only one entry.
	"""
	if len(entries) == 0:
		raise AssemblyError("no frames to assemble")
	descriptor = TimelineDescriptor()
	for image_path, duration_ms in entries:
		descriptor.add_file(image_path)
		descriptor.add_duration(utils.milliseconds_to_seconds(duration_ms))
	if len(entries) == 1:
		descriptor.add_file(entries[0][0])
	return descriptor

#============================================

def write_descriptor(descriptor: TimelineDescriptor, descriptor_path: str) -> str:
	"""
	Write the descriptor with image paths relative to its own directory.
	"""
	base_dir = os.path.dirname(os.path.abspath(descriptor_path))
	text = descriptor.to_text(base_dir)
	try:
		with open(descriptor_path, 'w', encoding='utf-8') as handle:
			handle.write(text)
	except OSError as exc:
		raise AssemblyError(f"cannot write {descriptor_path}: {exc}") from exc
	return descriptor_path
