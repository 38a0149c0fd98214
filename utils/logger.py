import logging
import logging.config
from pathlib import Path

def setup_logger(app_config=None):
    """Настройка логирования из конфигурации приложения"""
    if app_config is None:
        from config import config as app_config
    if app_config.log_to_file:
        Path(app_config.log_dir).mkdir(exist_ok=True, parents=True)
    logging.config.dictConfig(app_config.get_logging_config())
    return logging.getLogger()
