#!/usr/bin/env python3

import os
from dmdlib.core import utils
from dmdlib.core.errors import CleanupWarning
from dmdlib.core.errors import EncodeError

STDERR_TAIL_LINES = 20

#============================================

class FfmpegEncoder():
	def __init__(self, config):
		self.config = config

	#============================
	def build_command(self, descriptor_path: str, output_path: str,
		canvas_size: tuple, hold_seconds=None, total_seconds=None) -> list:
		"""
		Build the ffmpeg concat encode command.

		The concat demuxer drops the duration of the last listed image, so
		hold_seconds clones the final picture for that long and total_seconds
		cuts the output at the exact timeline length.
		"""
		width, height = canvas_size
		out_width = width * self.config.display_scale
		out_height = height * self.config.display_scale
		# yuv420p needs even dimensions
		out_width += out_width % 2
		out_height += out_height % 2
		video_filter = f"scale={out_width}:{out_height}:flags={self.config.scale_flags}"
		if hold_seconds is not None:
			video_filter += (",tpad=stop_mode=clone:stop_duration="
				f"{utils.format_seconds(hold_seconds)}")
		cmd = [self.config.ffmpeg_bin, "-y", "-hide_banner", "-loglevel", "error"]
		cmd += ["-f", "concat", "-safe", "0", "-i", descriptor_path]
		cmd += ["-vf", video_filter]
		cmd += ["-codec:v", self.config.video_codec, "-crf", str(self.config.crf)]
		cmd += ["-pix_fmt", self.config.pixel_format]
		cmd += ["-r", f"{self.config.frame_rate:g}"]
		cmd += ["-an"]
		if total_seconds is not None:
			cmd += ["-t", utils.format_seconds(total_seconds)]
		cmd += ["-shortest", output_path]
		return cmd

	#============================
	def encode(self, descriptor_path: str, output_path: str, canvas_size: tuple,
		cleanup_paths: list = None, partial_path: str = None,
		hold_seconds=None, total_seconds=None) -> str:
		"""
		Encode the concat descriptor into output_path.

		Args:
			descriptor_path: Concat list written by the timeline assembler.
			output_path: Video file to produce.
			canvas_size: Logical (width, height) of the recording.
			cleanup_paths: Files to delete once the encode succeeded.
			partial_path: Where ffmpeg writes before the finished file is
				moved to output_path. Defaults to output_path itself.
			hold_seconds: Duration of the last frame, held by the encoder.
			total_seconds: Sum of all frame durations, the output length.

		Returns:
			str: output_path.
		"""
		encode_path = partial_path or output_path
		cmd = self.build_command(descriptor_path, encode_path, canvas_size,
			hold_seconds, total_seconds)
		try:
			proc = utils.run_process(cmd)
		except OSError as exc:
			raise EncodeError(f"cannot launch {self.config.ffmpeg_bin}: {exc}") from exc
		if proc.returncode != 0:
			stderr_lines = (proc.stderr or "").strip().splitlines()
			tail = "\n".join(stderr_lines[-STDERR_TAIL_LINES:])
			raise EncodeError(
				f"{self.config.ffmpeg_bin} exited with status {proc.returncode}", tail)
		if not os.path.isfile(encode_path):
			raise EncodeError(f"{self.config.ffmpeg_bin} did not produce {encode_path}")
		if encode_path != output_path:
			try:
				os.replace(encode_path, output_path)
			except OSError as exc:
				raise EncodeError(f"cannot move {encode_path} to {output_path}: {exc}") from exc
		if cleanup_paths:
			cleanup_artifacts(cleanup_paths)
		return output_path

#============================================

def cleanup_artifacts(paths: list) -> list:
	"""
	Delete transient files, reporting failures as warnings.

	Returns:
		list: CleanupWarning for every file that could not be removed.
	"""
	problems = []
	for filepath in paths:
		if not filepath or not os.path.exists(filepath):
			continue
		try:
			os.remove(filepath)
		except OSError as exc:
			problem = CleanupWarning(f"could not remove {filepath}: {exc}")
			utils.warn(str(problem))
			problems.append(problem)
	return problems
