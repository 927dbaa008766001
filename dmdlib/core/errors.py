#!/usr/bin/env python3

"""
Error types for the recording to video pipeline.

Every fatal error is a RuntimeError carrying the pipeline stage it came from,
so callers can report "where" and "why" without knowing each class.
"""

#============================================

class DmdError(RuntimeError):
	stage = "convert"

#============================================

class ConfigError(DmdError):
	stage = "config"

#============================================

class ParseError(DmdError):
	stage = "parse"

#============================================

class SchemaError(DmdError):
	stage = "schema"

#============================================

class MalformedBitmapError(DmdError):
	stage = "bitmap"

#============================================

class RenderError(DmdError):
	stage = "render"

#============================================

class AssemblyError(DmdError):
	stage = "assemble"

#============================================

class EncodeError(DmdError):
	stage = "encode"

	def __init__(self, message: str, stderr: str = ""):
		self.stderr = stderr
		if stderr:
			message = f"{message}\n{stderr}"
		super().__init__(message)

#============================================

class CleanupWarning(UserWarning):
	stage = "cleanup"
