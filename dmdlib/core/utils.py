#!/usr/bin/env python3

import os
import shlex
import shutil
import subprocess
import sys
from decimal import Decimal

QUIET_ENV_VAR = "DMD2VIDEO_QUIET"

#============================================

def set_quiet_mode(quiet: bool) -> None:
	if quiet:
		os.environ[QUIET_ENV_VAR] = "1"
	else:
		os.environ.pop(QUIET_ENV_VAR, None)

#============================================

def is_quiet_mode() -> bool:
	value = os.environ.get(QUIET_ENV_VAR, "")
	return value.strip().lower() not in ("", "0", "false", "no")

#============================================

def info(message: str) -> None:
	if not is_quiet_mode():
		print(message)

#============================================

def warn(message: str) -> None:
	sys.stderr.write(f"WARNING: {message}\n")

#============================================

def error(message: str) -> None:
	sys.stderr.write(f"{message}\n")

#============================================

def run_process(cmd: list) -> subprocess.CompletedProcess:
	"""
	Run a subprocess command and capture its output.

	Args:
		cmd: Command list to execute.

	Returns:
		subprocess.CompletedProcess: Completed process, whatever its exit code.
	"""
	showcmd = shlex.join(cmd)
	info(f"CMD: '{showcmd}'")
	proc = subprocess.run(cmd, capture_output=True, text=True)
	return proc

#============================================

def check_dependency(cmd_name: str) -> bool:
	return shutil.which(cmd_name) is not None

#============================================

def milliseconds_to_seconds(milliseconds: int) -> Decimal:
	"""
	Convert a frame duration in milliseconds to seconds.

	Durations are exact integers of milliseconds, so the result is an exact
	Decimal with at most three fractional digits.
	"""
	if isinstance(milliseconds, bool) or not isinstance(milliseconds, int):
		raise TypeError("milliseconds must be an int")
	return Decimal(milliseconds) / Decimal(1000)

#============================================

def format_seconds(seconds: Decimal) -> str:
	return f"{seconds:.3f}"
