import logging

from order_mgt.core import config

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = None, sql_echo: bool = None) -> None:
    """Configure root logging for the API process"""
    level = level or config.LOG_LEVEL
    sql_echo = config.SQL_ECHO if sql_echo is None else sql_echo

    logging.basicConfig(level=level, format=LOG_FORMAT)

    # Keep SQL statements out of the log unless echo was asked for
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if sql_echo else logging.WARNING
    )
