#!/usr/bin/env python3

import os
import shutil
from tqdm import tqdm
from dmdlib.core import utils
from dmdlib.core import timeline
from dmdlib.core.errors import RenderError
from dmdlib.core.rasterizer import DmdRasterizer
from dmdlib.core.recording import load_recording
from dmdlib.media.ffmpeg_encode import FfmpegEncoder

DESCRIPTOR_NAME = "timeline.ffconcat"

STATUS_CONVERTED = 'converted'
STATUS_SKIPPED = 'skipped'
STATUS_VALIDATED = 'validated'

#============================================

def work_dir_for(output_path: str) -> str:
	"""Private artifact directory for one conversion, next to its video."""
	out_dir = os.path.dirname(os.path.abspath(output_path))
	stem = os.path.splitext(os.path.basename(output_path))[0]
	return os.path.join(out_dir, f".{stem}.work")

#============================================

def is_work_dir_name(name: str) -> bool:
	return name.startswith('.') and name.endswith('.work')

#============================================

class DmdConverter():
	def __init__(self, config, rasterizer: DmdRasterizer = None,
		encoder: FfmpegEncoder = None):
		self.config = config
		self.rasterizer = rasterizer or DmdRasterizer(config)
		self.encoder = encoder or FfmpegEncoder(config)

	#============================
	def convert(self, recording_path: str, output_path: str) -> str:
		"""
		Run one recording through load, render, assemble and encode.

		Returns:
			str: 'converted', 'skipped' when the video already exists, or
			'validated' for a dry run.
		"""
		if os.path.exists(output_path):
			utils.info(f"skip {recording_path}: {output_path} exists")
			return STATUS_SKIPPED
		recording = load_recording(recording_path, self.config.canvas_width,
			self.config.canvas_height)
		total_seconds = utils.milliseconds_to_seconds(recording.total_duration_ms())
		if self.config.dry_run:
			utils.info(f"valid {recording_path}: {len(recording.frames)} frames, "
				f"{utils.format_seconds(total_seconds)} seconds")
			return STATUS_VALIDATED
		work_dir = work_dir_for(output_path)
		self._reset_work_dir(work_dir)
		image_files = self._render_frames(recording, work_dir)
		entries = [(image_file, frame.duration)
			for image_file, frame in zip(image_files, recording.frames)]
		descriptor = timeline.assemble(entries)
		descriptor_path = os.path.join(work_dir, DESCRIPTOR_NAME)
		timeline.write_descriptor(descriptor, descriptor_path)
		stem, extension = os.path.splitext(os.path.basename(output_path))
		partial_path = os.path.join(work_dir, f"{stem}.partial{extension}")
		cleanup_paths = []
		if not self.config.keep_temp:
			cleanup_paths = image_files + [descriptor_path]
		self.encoder.encode(descriptor_path, output_path,
			(recording.width, recording.height), cleanup_paths=cleanup_paths,
			partial_path=partial_path, hold_seconds=descriptor.durations()[-1],
			total_seconds=descriptor.total_seconds())
		if not self.config.keep_temp:
			self._remove_work_dir(work_dir)
		utils.info(f"Video for {recording_path} created at {output_path} "
			f"({len(recording.frames)} frames, {utils.format_seconds(total_seconds)} seconds)")
		return STATUS_CONVERTED

	#============================
	def _reset_work_dir(self, work_dir: str) -> None:
		try:
			if os.path.isdir(work_dir):
				# leftovers from an interrupted or failed run
				shutil.rmtree(work_dir)
			os.makedirs(work_dir)
		except OSError as exc:
			raise RenderError(f"cannot prepare {work_dir}: {exc}") from exc

	#============================
	def _render_frames(self, recording, work_dir: str) -> list:
		index_width = recording.index_width()
		frames = recording.frames
		if not utils.is_quiet_mode():
			frames = tqdm(frames, desc=os.path.basename(recording.source),
				unit="frame", leave=False)
		image_files = []
		for frame in frames:
			image_files.append(self.rasterizer.render(frame, work_dir, index_width))
		return image_files

	#============================
	def _remove_work_dir(self, work_dir: str) -> None:
		try:
			os.rmdir(work_dir)
		except OSError as exc:
			utils.warn(f"could not remove {work_dir}: {exc}")
