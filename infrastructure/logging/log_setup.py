import sys

from loguru import logger

# LoguruLogger は "<event> <json>" をメッセージにするので時刻とレベルだけ付ける
CONSOLE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <7} | {message}"


def setup_console_logging(level: str = "INFO") -> None:
    logger.remove()
    logger.add(sys.stderr, level=level.upper(), format=CONSOLE_FORMAT, backtrace=False, diagnose=False)
