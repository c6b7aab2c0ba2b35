# logger_setup.py

import logging
import os

LOGGER_NAME = "star_sim"
LOG_FILE_NAME = "simulation.log"
DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _reset_handlers(logger):
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)


def setup_logging(config: dict, log_root: str = 'runs') -> logging.Logger:
    """
    Configures the "star_sim" logger for one run.

    Records go to runs/<run_id>/simulation.log and to the console. The logger does
    not propagate to the root logger, and numba's compiler chatter is held at
    WARNING so JIT compilation does not flood the run log.

    Data Contract:
    - Inputs:
        - config (dict): The loaded config file. 'run_id' is required; 'logging.level'
          and 'logging.format' fall back to INFO and DEFAULT_FORMAT.
        - log_root (str): Directory under which run directories are created.
    - Outputs: The configured "star_sim" logger.
    - Side Effects: Creates the run directory; replaces any handlers left by an
      earlier call.
    """
    run_id = config['run_id']
    log_config = config.get('logging', {})

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(log_config.get('level', 'INFO'))
    logger.propagate = False
    logging.getLogger('numba').setLevel(logging.WARNING)

    log_dir = os.path.join(log_root, run_id)
    os.makedirs(log_dir, exist_ok=True)
    log_file = os.path.join(log_dir, LOG_FILE_NAME)

    formatter = logging.Formatter(log_config.get('format', DEFAULT_FORMAT))
    _reset_handlers(logger)
    for handler in (logging.FileHandler(log_file), logging.StreamHandler()):
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    logger.info(f"Logging initialized. Run ID: {run_id}, seed: {config.get('master_seed')}. Log file: {log_file}")
    return logger
