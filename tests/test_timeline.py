"""
Pytest coverage for the concat timeline descriptor.
"""

# Standard Library
import os
import sys
from decimal import Decimal

# PIP3 modules
import pytest

REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if REPO_ROOT not in sys.path:
	sys.path.insert(0, REPO_ROOT)

# local repo modules
from dmdlib.core import timeline
from dmdlib.core import utils
from dmdlib.core.errors import AssemblyError

#============================================

def test_milliseconds_to_seconds() -> None:
	assert utils.milliseconds_to_seconds(40) == Decimal("0.04")
	assert utils.milliseconds_to_seconds(1500) == Decimal("1.5")
	assert utils.format_seconds(utils.milliseconds_to_seconds(33)) == "0.033"
	with pytest.raises(TypeError):
		utils.milliseconds_to_seconds(1.5)

#============================================

def test_single_frame_repeats_reference() -> None:
	descriptor = timeline.assemble([("frame_00000.png", 750)])
	assert descriptor.directives == [
		('file', "frame_00000.png"),
		('duration', Decimal("0.75")),
		('file', "frame_00000.png"),
	]
	assert descriptor.total_seconds() == Decimal("0.75")

#============================================

def test_multi_frame_duration_trails_each_reference() -> None:
	entries = [("a.png", 40), ("b.png", 100), ("c.png", 2000)]
	descriptor = timeline.assemble(entries)
	kinds = [kind for kind, _ in descriptor.directives]
	assert kinds == ['file', 'duration'] * 3
	assert descriptor.image_references() == ["a.png", "b.png", "c.png"]
	assert descriptor.durations() == [Decimal("0.04"), Decimal("0.1"), Decimal("2")]
	assert descriptor.total_seconds() == Decimal("2.14")

#============================================

def test_empty_timeline() -> None:
	with pytest.raises(AssemblyError):
		timeline.assemble([])

#============================================

def test_descriptor_text() -> None:
	descriptor = timeline.assemble([("/work/frame_00001.png", 40)])
	text = descriptor.to_text("/work")
	assert text.splitlines() == [
		"ffconcat version 1.0",
		"file 'frame_00001.png'",
		"duration 0.040",
		"file 'frame_00001.png'",
	]

#============================================

def test_quote_concat_path() -> None:
	assert timeline.quote_concat_path("it's.png") == "'it'\\''s.png'"

#============================================

def test_write_descriptor_relative_paths(tmp_path) -> None:
	images = [str(tmp_path / "frame_00000.png"), str(tmp_path / "frame_00001.png")]
	descriptor = timeline.assemble([(images[0], 40), (images[1], 80)])
	path = timeline.write_descriptor(descriptor, str(tmp_path / "timeline.ffconcat"))
	with open(path, encoding="utf-8") as handle:
		lines = handle.read().splitlines()
	assert lines == [
		"ffconcat version 1.0",
		"file 'frame_00000.png'",
		"duration 0.040",
		"file 'frame_00001.png'",
		"duration 0.080",
	]

#============================================

def test_write_descriptor_failure(tmp_path) -> None:
	descriptor = timeline.assemble([("frame_00000.png", 40)])
	with pytest.raises(AssemblyError):
		timeline.write_descriptor(descriptor, str(tmp_path / "missing" / "t.ffconcat"))
