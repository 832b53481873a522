from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path


def _ensure_repo_root_on_sys_path() -> None:
	# Allow running both:
	# - python -m pysay.main
	# - python pysay/main.py
	if __package__:
		return
	repo_root = str(Path(__file__).resolve().parents[1])
	if repo_root not in sys.path:
		sys.path.insert(0, repo_root)


def _read_text(args: argparse.Namespace) -> str:
	if args.text is not None:
		return args.text
	if sys.stdin is None or sys.stdin.isatty():
		return input("> ").strip()
	return sys.stdin.read().strip()


async def _run(container, args: argparse.Namespace, text: str) -> None:
	speech = container.config.speech
	session = container.session

	if args.export:
		await session.export_async(text, speech.voice, speech.speed, args.export)
	else:
		await session.speak_async(text, speech.voice, speech.speed)


def _run_gui(container) -> int:
	try:
		from PySide6.QtWidgets import QApplication
	except ImportError:
		print("The control window needs PySide6: pip install 'pysay[gui]'", file=sys.stderr)
		return 2

	from pysay.presentation.main_window import MainWindow
	from pysay.presentation.session_worker import SessionWorker

	app = QApplication(sys.argv[:1])
	worker = SessionWorker(container.session, container.logger)
	window = MainWindow(worker, container.config.speech)
	worker.start()
	window.show()
	try:
		return app.exec()
	finally:
		worker.shutdown()


def main(argv: list[str] | None = None) -> int:
	_ensure_repo_root_on_sys_path()

	from pysay.application.errors import ParameterError, SpeechError
	from pysay.config import AppConfig
	from pysay.di_container import build_container
	from pysay.utils.args import parse_args
	from pysay.utils.env import load_env_file

	args = parse_args(sys.argv[1:] if argv is None else argv)
	load_env_file(args.env_file)

	try:
		config = AppConfig.from_env().with_overrides(
			engine=args.engine,
			executable=args.executable,
			voice=args.voice,
			speed=args.speed,
		)
		container = build_container(config)
	except ValueError as exc:
		print(f"Config error: {exc}", file=sys.stderr)
		return 2

	if args.verbose:
		container.logger.on_emit = lambda line: print(line, file=sys.stderr)

	if args.gui:
		return _run_gui(container)

	text = _read_text(args)

	try:
		asyncio.run(_run(container, args, text))
		return 0
	except ParameterError as exc:
		print(f"Error: {exc}", file=sys.stderr)
		return 2
	except SpeechError as exc:
		print(f"Speech error: {exc}", file=sys.stderr)
		return 1
	except KeyboardInterrupt:
		return 130
	finally:
		if args.save_log or config.save_logs:
			container.logger.save()


if __name__ == "__main__":
	raise SystemExit(main())
