import logging
import sys


def configure_logging(level: str = "INFO") -> None:
	"""Install a single stdout handler on the root logger.

	Safe to call more than once; later calls only adjust the level.
	"""
	root_logger = logging.getLogger()
	resolved = logging.getLevelName(level.upper())
	if not isinstance(resolved, int):
		resolved = logging.INFO
	if root_logger.handlers:
		root_logger.setLevel(resolved)
		return

	handler = logging.StreamHandler(sys.stdout)
	formatter = logging.Formatter(
		"%(asctime)s | %(levelname)s | %(name)s | %(message)s",
		datefmt="%Y-%m-%d %H:%M:%S",
	)
	handler.setFormatter(formatter)
	root_logger.addHandler(handler)
	root_logger.setLevel(resolved)
	# SQL echo is controlled by settings.database_echo, not the root level
	logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
