#!/usr/bin/env python3

import os
import numpy
import PIL.Image
import PIL.ImageDraw
from dmdlib.core.errors import RenderError

BACKGROUND_COLOR = (0, 0, 0)

#============================================

def brightness_table(gamma: float = 2.2) -> numpy.ndarray:
	"""
	Alpha for each hex digit 0..15.

	b = min(1, (d / 15) ** (1 / gamma)); gamma 1 gives the linear ramp.
	"""
	if gamma <= 0:
		raise ValueError("gamma must be > 0")
	normalized = numpy.arange(16, dtype=numpy.float64) / 15.0
	corrected = numpy.power(normalized, 1.0 / gamma)
	return numpy.minimum(corrected, 1.0)

#============================================

def artifact_name(frame, index_width: int = 5) -> str:
	name = f"frame_{frame.index:0{index_width}d}"
	if frame.occurrence > 0:
		name += f"_{frame.occurrence}"
	return name + ".png"

#============================================

class DmdRasterizer():
	def __init__(self, config):
		self.pixel_size = config.pixel_size
		self.pixel_gap = config.pixel_gap
		self.color = tuple(config.color)
		self.gamma = config.effective_gamma()
		table = brightness_table(self.gamma)
		self.alpha_table = [int(round(value * 255)) for value in table]

	#============================
	def image_size(self, frame) -> tuple:
		return (frame.width * self.pixel_size, frame.height * self.pixel_size)

	#============================
	def draw(self, frame) -> PIL.Image.Image:
		image = PIL.Image.new("RGB", self.image_size(frame), color=BACKGROUND_COLOR)
		# RGBA draw mode blends each fill over the black background
		draw = PIL.ImageDraw.Draw(image, "RGBA")
		block = self.pixel_size - self.pixel_gap
		red, green, blue = self.color
		for y, row in enumerate(frame.bitmap):
			top = y * self.pixel_size
			for x, digit in enumerate(row):
				alpha = self.alpha_table[digit]
				if alpha == 0:
					continue
				left = x * self.pixel_size
				draw.rectangle([left, top, left + block - 1, top + block - 1],
					fill=(red, green, blue, alpha))
		return image

	#============================
	def render(self, frame, out_dir: str, index_width: int = 5) -> str:
		"""
		Render one frame to a PNG inside out_dir and return its path.
		"""
		image = self.draw(frame)
		out_file = os.path.join(out_dir, artifact_name(frame, index_width))
		try:
			image.save(out_file, "PNG")
		except OSError as exc:
			raise RenderError(f"cannot write {out_file}: {exc}") from exc
		return out_file
