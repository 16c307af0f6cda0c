import logging
import sys

from pythonjsonlogger.json import JsonFormatter

TEXT_FORMAT = "%(levelname)s %(name)s: %(message)s"
JSON_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def setup_logging(verbose: bool = False, json_output: bool = False) -> logging.Logger:
    """
    Configure root logging for the mediatr CLI.

    Logs go to stderr so they do not mix with the command's own output.
    With json_output each record is a JSON object, for collection by
    log shippers.

    Returns:
        logging.Logger: The configured root logger instance.
    """
    if json_output:
        formatter = JsonFormatter(JSON_FORMAT)
    else:
        formatter = logging.Formatter(TEXT_FORMAT)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    root_logger.handlers = []
    root_logger.addHandler(handler)

    # google-auth and urllib3 are chatty at DEBUG
    for name in ("google", "urllib3"):
        logging.getLogger(name).setLevel(logging.WARNING)

    return root_logger
