#!/usr/bin/env python3

import os
from dmdlib.core import utils
from dmdlib.core.converter import DmdConverter
from dmdlib.core.converter import STATUS_CONVERTED
from dmdlib.core.converter import STATUS_SKIPPED
from dmdlib.core.converter import is_work_dir_name
from dmdlib.core.errors import ConfigError
from dmdlib.core.errors import DmdError

#============================================

def iter_recordings(root: str, extension: str = '.json'):
	"""
	Yield recording paths under root, depth first, in sorted order.

	Conversion work directories are not entered. A directory that cannot be
	listed is reported and skipped.
	"""
	try:
		entries = sorted(os.listdir(root))
	except OSError as exc:
		utils.error(f"cannot read {root}: {exc}")
		return
	for name in entries:
		full_path = os.path.join(root, name)
		if os.path.isdir(full_path):
			if is_work_dir_name(name):
				continue
			yield from iter_recordings(full_path, extension)
		elif os.path.isfile(full_path) and name.lower().endswith(extension.lower()):
			yield full_path

#============================================

class BatchSummary():
	def __init__(self):
		self.converted = []
		self.skipped = []
		self.validated = []
		# (recording path, stage, message)
		self.failed = []

	#============================
	def exit_code(self) -> int:
		if len(self.failed) > 0:
			return 1
		return 0

	#============================
	def summary_line(self) -> str:
		line = (f"{len(self.converted)} converted, {len(self.skipped)} skipped, "
			f"{len(self.failed)} failed")
		if len(self.validated) > 0:
			line += f", {len(self.validated)} validated"
		return line

#============================================

class DmdBatch():
	def __init__(self, config, converter: DmdConverter = None):
		self.config = config
		self.converter = converter or DmdConverter(config)

	#============================
	def output_path_for(self, recording_path: str) -> str:
		"""
		Mirror the recording's place in the input tree under output_root.
		"""
		input_root = self.config.input_root
		if os.path.isfile(input_root):
			relative = os.path.basename(recording_path)
		else:
			relative = os.path.relpath(recording_path, input_root)
		stem = os.path.splitext(relative)[0]
		return os.path.join(self.config.output_root, stem + self.config.video_extension)

	#============================
	def recordings(self):
		input_root = self.config.input_root
		if input_root is None:
			raise ConfigError("input root is not set")
		if os.path.isfile(input_root):
			return iter([input_root])
		if not os.path.isdir(input_root):
			raise ConfigError(f"input root not found: {input_root}")
		return iter_recordings(input_root, self.config.recording_extension)

	#============================
	def run(self) -> BatchSummary:
		summary = BatchSummary()
		for recording_path in self.recordings():
			output_path = self.output_path_for(recording_path)
			try:
				status = self.converter.convert(recording_path, output_path)
			except DmdError as exc:
				summary.failed.append((recording_path, exc.stage, str(exc)))
				utils.error(f"FAILED {recording_path} [{exc.stage}]: {exc}")
				continue
			if status == STATUS_CONVERTED:
				summary.converted.append(recording_path)
			elif status == STATUS_SKIPPED:
				summary.skipped.append(recording_path)
			else:
				summary.validated.append(recording_path)
		print(summary.summary_line())
		return summary
