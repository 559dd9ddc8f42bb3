import logging
from logging.handlers import RotatingFileHandler
import os
from pathlib import Path
import random

LOG_PATH = os.path.join(os.getcwd(), "logs/notebooks.log")


class MyLogger:
    DEF_SECTION_NAME = "UNKNOWN SECTION"

    def __init__(
        self,
        label: str,
        section_name: str = None,
        file_log_path=LOG_PATH,
        print_to_console: bool = True,
    ):
        self.label = label
        self.section_name = section_name if section_name else MyLogger.DEF_SECTION_NAME
        self.print_to_console = print_to_console

        # session ids must not collide, a reused logger keeps its old file handler
        self.session_id = random.randint(100, 999)
        while f"{self.label}-S{self.session_id}" in logging.Logger.manager.loggerDict:
            self.session_id = random.randint(100, 999)
        logger_name = f"{self.label}-S{self.session_id}"

        self.logger = logging.getLogger(logger_name)
        self.logger.setLevel(logging.INFO)
        self.logger.propagate = False

        # Avoid adding duplicate handlers when re-imported
        if not self.logger.handlers:
            Path(file_log_path).parent.mkdir(parents=True, exist_ok=True)
            handler = RotatingFileHandler(
                file_log_path,
                maxBytes=5_000_000,
                backupCount=3,
                encoding="utf-8",
                delay=True,
            )
            formatter = logging.Formatter(
                "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
            )
            handler.setFormatter(formatter)
            self.logger.addHandler(handler)

    def _emit(self, msg: str, level: int, print_to_console: bool = None):
        self.logger.log(level, msg)

        if print_to_console is None:
            print_to_console = self.print_to_console

        if print_to_console:
            print(msg)

    def _prefix(self, kind: str) -> str:
        return f"[{self.label if self.label else 'UNSPECIFIED'} {kind}]"

    def log_check(self, text: str, print_to_console: bool = None):
        self._emit(f"{self._prefix('CHECK')} {text}", logging.INFO, print_to_console)

    def log_result(self, text, print_to_console: bool = None):
        self._emit(f"{self._prefix('RESULT')} {text}", logging.INFO, print_to_console)

    def log_warning(self, text: str, print_to_console: bool = None):
        self._emit(f"{self._prefix('WARNING')} {text}", logging.WARNING, print_to_console)

    def log_error(self, text: str, print_to_console: bool = None):
        self._emit(f"{self._prefix('ERROR')} {text}", logging.ERROR, print_to_console)

    def close(self):
        for handler in list(self.logger.handlers):
            self.logger.removeHandler(handler)
            handler.close()

    def start_session(self, print_to_console: bool = None):
        msg = f"================== Starting section: {self.section_name} (Session {self.session_id}) =================="
        self._emit(msg, logging.INFO, print_to_console)
