import logging
import logging.config

from moodbuddy.config import AppConfig, config as default_config

def setup_logging(app_config: AppConfig = None) -> logging.Logger:
    app_config = app_config or default_config
    if app_config.log_to_file:
        app_config.log_dir.mkdir(exist_ok=True, parents=True)
    logging.config.dictConfig(app_config.get_logging_config())
    return logging.getLogger()
