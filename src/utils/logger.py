"""
Structured Logging System for the Live Session Reporter
Provides rotating file logs with immediate flush for real-time monitoring
"""
import logging
from pathlib import Path
from logging.handlers import RotatingFileHandler


class ReportLogger:
    """Centralized logging with rotation and component-tagged messages"""

    def __init__(self, name="Live-Reporter", log_dir="logs", log_level="INFO",
                 max_mb=10, backup_count=5):
        """
        Initialize logger with rotating file handlers

        Args:
            name: Logger name
            log_dir: Directory for log files
            log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            max_mb: Size of the main log file before rotation
            backup_count: Rotated main log files to keep
        """
        self.logger = logging.getLogger(name)
        self.logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))
        self.logger.propagate = False

        # Clear any existing handlers
        self.logger.handlers.clear()

        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)

        log_format = logging.Formatter(
            '[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

        # 1. Main rotating file handler
        main_handler = RotatingFileHandler(
            log_path / 'live_reporter.log',
            maxBytes=max_mb * 1024 * 1024,
            backupCount=backup_count,
            encoding='utf-8'
        )
        main_handler.setLevel(logging.DEBUG)
        main_handler.setFormatter(log_format)
        self.logger.addHandler(main_handler)

        # 2. Error-only log file (5MB per file, keep 3 files)
        error_handler = RotatingFileHandler(
            log_path / 'errors.log',
            maxBytes=5 * 1024 * 1024,
            backupCount=3,
            encoding='utf-8'
        )
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(log_format)
        self.logger.addHandler(error_handler)

        # 3. Console handler
        console_handler = logging.StreamHandler()
        console_handler.setLevel(logging.INFO)
        console_handler.setFormatter(log_format)
        self.logger.addHandler(console_handler)

    def debug(self, message, component=""):
        self._log(logging.DEBUG, message, component)

    def info(self, message, component=""):
        self._log(logging.INFO, message, component)

    def warning(self, message, component=""):
        self._log(logging.WARNING, message, component)

    def error(self, message, component="", exc_info=False):
        self._log(logging.ERROR, message, component, exc_info=exc_info)

    def critical(self, message, component="", exc_info=False):
        self._log(logging.CRITICAL, message, component, exc_info=exc_info)

    def _log(self, level, message, component="", exc_info=False):
        """Internal logging method with component prefix"""
        if component:
            message = f"[{component}] {message}"

        self.logger.log(level, message, exc_info=exc_info)

        # Force immediate flush
        for handler in self.logger.handlers:
            handler.flush()

    def log_state_change(self, user_id, stage):
        """Log a conversation state write or clear"""
        label = stage if stage else "cleared"
        self.debug(f"User {user_id} - state {label}", component="State")

    def log_ocr_attempt(self, user_id, attempt, total_attempts, file_size_kb):
        """Log one OCR provider call"""
        self.info(
            f"User {user_id} - OCR attempt {attempt}/{total_attempts} ({file_size_kb}KB)",
            component="OCR"
        )

    def log_metrics_parsed(self, user_id, gmv_amount, duration_label):
        """Log what the metric parser pulled out of the OCR text"""
        self.info(
            f"User {user_id} - Parsed GMV={gmv_amount} duration={duration_label or '-'}",
            component="Parser"
        )

    def log_report_saved(self, report_id, host_id, gmv_amount):
        """Log a persisted report"""
        self.info(
            f"Report #{report_id} saved for host {host_id} (GMV {gmv_amount})",
            component="Reports"
        )


# Global logger instance
_global_logger = None

def get_logger(log_level=None):
    """Get or create global logger instance"""
    global _global_logger
    if _global_logger is None:
        import config
        _global_logger = ReportLogger(
            log_dir=config.LOG_FOLDER,
            log_level=log_level or config.LOG_LEVEL,
            max_mb=config.LOG_FILE_MAX_MB,
            backup_count=config.LOG_FILE_BACKUP_COUNT,
        )
    return _global_logger
