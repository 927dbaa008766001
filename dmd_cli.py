#!/usr/bin/env python3

import argparse
import os
import sys
from dmdlib.core import config as dmdconfig
from dmdlib.core import utils
from dmdlib.core.batch import DmdBatch
from dmdlib.core.errors import ConfigError

#============================================

def parse_args(argv=None):
	"""
	Parse command-line arguments.
	"""
	parser = argparse.ArgumentParser(
		description="Render DMD animation recordings into videos")
	parser.add_argument('-i', '--input', dest='input_root',
		help='recording file or directory tree of recordings')
	parser.add_argument('-o', '--output', dest='output_root',
		help='output root directory for rendered videos')
	parser.add_argument('-c', '--config', dest='config_file',
		help='yaml config file')
	parser.add_argument('--write-default-config', dest='default_config_file',
		help='write the default yaml config to this path and exit')
	parser.add_argument('-n', '--dry-run', dest='dry_run', action='store_true',
		help='validate recordings only, do not render')
	parser.add_argument('-k', '--keep-temp', dest='keep_temp',
		help='keep frame images and timeline files', action='store_true')
	parser.add_argument('-K', '--no-keep-temp', dest='keep_temp',
		help='remove frame images and timeline files', action='store_false')
	parser.add_argument('-p', '--preset', dest='preset', choices=sorted(dmdconfig.PRESETS),
		help='pixel rendering preset: bordered grid or raw 1:1 pixels')
	parser.add_argument('-l', '--linear', dest='brightness', action='store_const',
		const='linear', help='linear brightness, no gamma correction')
	parser.add_argument('-g', '--gamma', dest='gamma', type=float,
		help='gamma correction constant')
	parser.add_argument('-q', '--quiet', dest='quiet', action='store_true',
		help='only report failures and the summary')
	parser.set_defaults(keep_temp=None)
	args = parser.parse_args(argv)
	return args

#============================================

def build_config(args) -> dmdconfig.DmdConfig:
	config_path = "<code defaults>"
	config = dmdconfig.default_config()
	if args.config_file is not None:
		config_path = args.config_file
		config = dmdconfig.load_config(config_path)
	if args.preset is not None:
		config = dmdconfig.apply_preset(config, args.preset)
	config = dmdconfig.apply_overrides(config, {
		'paths.input_root': args.input_root,
		'paths.output_root': args.output_root,
		'render.brightness': args.brightness,
		'render.gamma': args.gamma,
		'io.keep_temp': args.keep_temp,
	})
	settings = dmdconfig.build_settings(config, config_path)
	settings.dry_run = args.dry_run
	return settings

#============================================

def main(argv=None) -> int:
	args = parse_args(argv)
	utils.set_quiet_mode(args.quiet)
	if args.default_config_file is not None:
		if os.path.exists(args.default_config_file):
			utils.error(f"config already exists: {args.default_config_file}")
			return 2
		dmdconfig.write_config_file(args.default_config_file, dmdconfig.default_config())
		print(f"Wrote default config: {args.default_config_file}")
		return 0
	try:
		settings = build_config(args)
		if settings.input_root is None:
			raise ConfigError("missing input: use -i/--input or settings.paths.input_root")
		if not settings.dry_run and not utils.check_dependency(settings.ffmpeg_bin):
			raise ConfigError(f"missing dependency: {settings.ffmpeg_bin}")
		summary = DmdBatch(settings).run()
	except ConfigError as exc:
		utils.error(f"ERROR: {exc}")
		return 2
	return summary.exit_code()


if __name__ == '__main__':
	sys.exit(main())
